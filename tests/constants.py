"""
Shared test constants.

Addresses and times used by the deployment fixtures in ``conftest.py`` and
by tests that build their own deployments.
"""

OWNER = "0x" + "0a" * 20
ALICE = "0x" + "a1" * 20
BOB = "0x" + "b0" * 20
CAROL = "0x" + "c4" * 20
DAVE = "0x" + "d4" * 20  # never whitelisted by the fixtures
SALE_ADDRESS = "0x" + "5a" * 20

# Thu Jun 08 2023 01:00:00 UTC
EVENT_START_TIME = 1686186000
BEFORE_START = EVENT_START_TIME - 60

TOKEN = 10**18
TEN_TOKENS = 10 * TOKEN
TWENTY_TOKENS = 20 * TOKEN
ONE_HUNDRED_TOKENS = 100 * TOKEN
