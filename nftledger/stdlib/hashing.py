import hashlib
import re
from nftledger import config
from nftledger.exceptions import InvalidAddress

'''
Addresses are carried around as lower case 0x-prefixed hex strings. Bytes are converted into that form and back.
'''

ADDRESS_RE = re.compile(r'^0x[0-9a-fA-F]{%d}$' % (config.ADDRESS_BYTES * 2))


def sha3(hex_str: str):
    byte_str = bytes.fromhex(hex_str)

    hasher = hashlib.sha3_256()
    hasher.update(byte_str)

    hashed_bytes = hasher.digest()

    return hashed_bytes.hex()


def sha256(hex_str: str):
    byte_str = bytes.fromhex(hex_str)

    hasher = hashlib.sha256()
    hasher.update(byte_str)

    hashed_bytes = hasher.digest()

    return hashed_bytes.hex()


def normalize_address(address):
    if isinstance(address, (bytes, bytearray)):
        if len(address) != config.ADDRESS_BYTES:
            raise InvalidAddress(address=address.hex())
        return '0x' + bytes(address).hex()

    if not isinstance(address, str) or ADDRESS_RE.match(address) is None:
        raise InvalidAddress(address=address)

    return address.lower()


def is_address(address):
    try:
        normalize_address(address)
    except InvalidAddress:
        return False
    return True


def derive_address(seed: str, nonce: int=0):
    # last 20 bytes of sha3(seed || nonce), the way contract addresses are derived from their deployer
    digest = sha3(seed.encode().hex() + nonce.to_bytes(8, 'big').hex())
    return '0x' + digest[-config.ADDRESS_BYTES * 2:]
