#
# Rounds
#

TEST_MESSAGE = "test message"
TEST_ROUND_ID = "round-test"
OTHER_ROUND_ID = "round-other"

NUMBER_OF_PARTICIPANTS = 3
THRESHOLD = 2

TEST_REPLICATION_TIMEOUT = 20
TEST_POLL_INTERVAL = 0.01
SHORT_REPLICATION_TIMEOUT = 0.3


#
# Oracle
#

MOCK_ORACLE_URL = "https://randomness.feldspar.test/v1/draw"
MOCK_ORACLE_SIGNING_KEY = bytes.fromhex("4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318")
