"""
This file is part of feldspar.

feldspar is free software: you can redistribute it and/or modify
it under the terms of the GNU Affero General Public License as published by
the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.

feldspar is distributed in the hope that it will be useful,
but WITHOUT ANY WARRANTY; without even the implied warranty of
MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
GNU Affero General Public License for more details.

You should have received a copy of the GNU Affero General Public License
along with feldspar.  If not, see <https://www.gnu.org/licenses/>.
"""


class DKGError(Exception):
    """Base class for all DKG engine errors."""


# Randomness #
##############

class EntropyError(DKGError):
    """Raised when the local entropy source cannot produce randomness. Fatal for the round."""


class RandomnessError(DKGError):
    """Base class for external randomness failures; retryable or abort at the caller's discretion."""


class OracleUnavailable(RandomnessError):
    """Raised when the randomness oracle cannot be reached or returns an unusable response."""


class VerificationFailed(RandomnessError):
    """Raised when a randomness proof does not verify."""


# Shares #
##########

class InvalidShare(DKGError):
    """A received share failed verification; recoverable by filing a complaint."""


class DecryptionError(InvalidShare):
    """A share package is malformed, unauthenticated or addressed to someone else."""


class InvalidIndex(DKGError, ValueError):
    """A participant index is zero, negative or outside the curve order."""


class InvalidPoint(DKGError, ValueError):
    """Bytes do not decode to a point on the curve."""


# Round Sequencing #
####################

class PhaseError(DKGError):
    """A round operation was called out of order."""


class NoFinalShare(PhaseError):
    """Signing was attempted before the final share was computed."""


class InsufficientShares(DKGError):
    """Not enough qualified shares are available to finalize under the configured policy."""


class ReplicationTimeout(DKGError):
    """A bounded wait on the broadcast log expired."""


class RoundCancelled(DKGError):
    """A round was aborted by its caller while waiting."""


# Wire & Configuration #
########################

class InvalidRecord(DKGError, ValueError):
    """A broadcast log record does not match its schema."""


class ConfigurationError(DKGError, ValueError):
    """A round configuration is invalid."""
