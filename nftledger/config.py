import os


def _env_flag(name, default):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


DB_TYPE = os.getenv('DB_TYPE', 'memory')

DB_URL = os.getenv('DB_URL', 'localhost')
DB_PORT = int(os.getenv('DB_PORT', 27017))
DB_NAME = os.getenv('DB_NAME', 'nftledger')
DB_COLLECTION = 'state'

# Resource limits
RECURSION_LIMIT = 1024

DELIMITER = ':'
INDEX_SEPARATOR = '.'

MAX_HASH_DIMENSIONS = 16
MAX_KEY_SIZE = 1024

PRIVATE_METHOD_PREFIX = '_'

LEDGER_NAME = 'erc721'

# Addresses are 20 byte account identifiers in hex
ADDRESS_BYTES = 20
ZERO_ADDRESS = '0x' + '00' * ADDRESS_BYTES

MAX_TOKEN_ID = 2 ** 256 - 1

# bytes4(keccak256("onERC721Received(address,address,uint256,bytes)"))
RECEIVED_SELECTOR = bytes.fromhex('150b7a02')

# Mint policies
ALLOW_REMINT = _env_flag('ALLOW_REMINT', True)
ALLOW_MINT_TO_ZERO = _env_flag('ALLOW_MINT_TO_ZERO', False)
