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

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from feldspar import exceptions
from feldspar.config import constants


class BaseConfiguration(ABC):
    """
    Abstract base class for saving a JSON serializable version of the subclass's attributes
    to the disk exported by `static_payload`, and restoring a subclass instance from the
    written JSON file by passing the deserialized values to the subclass's constructor.

    Subclasses define `NAME`, `VERSION` and `static_payload`:

    .. code::

        class MyItem(BaseConfiguration):
            NAME = 'my-item'
            VERSION = 1

            def static_payload(self) -> dict:
                return {**super().static_payload(), 'key': self.value}

    Writing never overwrites an existing file unless `override` is set; a filename
    `modifier` yields ``<name>-<modifier>.json`` instead.
    """

    NAME = NotImplemented
    VERSION = NotImplemented
    _CONFIG_FILE_EXTENSION = "json"

    INDENTATION = 2
    DEFAULT_CONFIG_ROOT = constants.DEFAULT_CONFIG_ROOT

    class ConfigurationError(exceptions.ConfigurationError):
        pass

    class OldVersion(ConfigurationError):
        def __init__(self, version, *args, **kwargs):
            self.version = version
            super().__init__(*args, **kwargs)

    def __init__(self, config_root: Optional[Path] = None, filepath: Optional[Path] = None):
        if self.NAME is NotImplemented:
            error = f"NAME must be implemented on BaseConfiguration subclass {self.__class__.__name__}"
            raise TypeError(error)

        self.config_root = Path(config_root or self.DEFAULT_CONFIG_ROOT)
        self.filepath = Path(filepath) if filepath else self.config_root / self.generate_filename()

    @abstractmethod
    def static_payload(self) -> dict:
        """
        Return a dictionary of JSON serializable configuration key/value pairs
        matching the input specification of this classes __init__.
        """
        payload = dict(config_root=self.config_root)
        return payload

    def validate(self) -> None:
        """Raises ConfigurationError when the current values are inconsistent."""

    @classmethod
    def generate_filename(cls, modifier: str = None) -> str:
        name = cls.NAME.lower()
        if modifier:
            name += f"-{modifier}"
        return f"{name}.{cls._CONFIG_FILE_EXTENSION.lower()}"

    @classmethod
    def default_filepath(cls, config_root: Optional[Path] = None) -> Path:
        return Path(config_root or cls.DEFAULT_CONFIG_ROOT) / cls.generate_filename()

    def generate_filepath(self,
                          filepath: Optional[Path] = None,
                          modifier: str = None,
                          override: bool = False) -> Path:
        if not filepath:
            filepath = self.config_root / self.generate_filename()
        filepath = Path(filepath)
        if filepath.exists() and not override:
            if not modifier:
                raise FileExistsError(f"{filepath} exists and no filename modifier supplied.")
            filepath = self.config_root / self.generate_filename(modifier=modifier)
        self.filepath = filepath
        return filepath

    def _ensure_config_root_exists(self) -> None:
        self.config_root.mkdir(parents=True, exist_ok=True, mode=0o755)

    def to_configuration_file(self,
                              filepath: Optional[Path] = None,
                              modifier: str = None,
                              override: bool = False) -> Path:
        filepath = self.generate_filepath(filepath=filepath, modifier=modifier, override=override)
        self._ensure_config_root_exists()
        filepath.parent.mkdir(parents=True, exist_ok=True)
        return self._write_configuration_file(filepath=filepath, override=override)

    @classmethod
    def from_configuration_file(cls, filepath: Optional[Path] = None, **overrides) -> 'BaseConfiguration':
        filepath = Path(filepath or cls.default_filepath())
        payload = cls._read_configuration_file(filepath=filepath)
        payload.update(overrides)
        return cls(filepath=filepath, **payload)

    @classmethod
    def _read_configuration_file(cls, filepath: Path) -> dict:
        """Reads `filepath` and returns the deserialized JSON payload dict."""
        with open(filepath, "r") as file:
            raw_contents = file.read()
        return cls.deserialize(raw_contents, payload_label=str(filepath))

    def _write_configuration_file(self, filepath: Path, override: bool = False) -> Path:
        """Writes to `filepath` and returns the written filepath.  Raises `FileExistsError` if the file exists."""
        if filepath.exists() and not override:
            raise FileExistsError(f"{filepath} exists and no filename modifier supplied.")
        with open(filepath, "w") as file:
            file.write(self.serialize())
        return filepath

    def serialize(self, serializer=json.dumps) -> str:
        """Returns the JSON serialized output of `static_payload`"""
        payload = self.static_payload()
        for key, value in payload.items():
            if isinstance(value, Path):
                payload[key] = str(value)
        payload["version"] = self.VERSION
        return serializer(payload, indent=self.INDENTATION)

    @classmethod
    def deserialize(cls, payload: str, deserializer=json.loads, payload_label: Optional[str] = None) -> dict:
        """Returns the JSON deserialized content of `payload`"""
        label = f"'{payload_label}' " if payload_label else ""
        try:
            deserialized_payload = deserializer(payload)
        except ValueError as e:
            raise cls.ConfigurationError(f"Configuration {label}is not valid JSON: {e}") from e

        version = deserialized_payload.pop("version", None)
        if version != cls.VERSION:
            raise cls.OldVersion(version,
                                 f"Configuration {label}is the wrong version. "
                                 f"Expected version {cls.VERSION}; Got version {version}")

        if 'config_root' in deserialized_payload:
            deserialized_payload['config_root'] = Path(deserialized_payload['config_root'])
        return deserialized_payload

    def update(self, filepath: Optional[Path] = None, **updates) -> None:
        for field, value in updates.items():
            try:
                getattr(self, field)
            except AttributeError:
                raise self.ConfigurationError(f"Cannot update '{field}'. It is an invalid configuration field.")
            else:
                setattr(self, field, value)
        self.validate()
        # the file exists; overwrite it
        self._write_configuration_file(filepath=Path(filepath or self.filepath), override=True)
