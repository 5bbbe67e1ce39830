from unittest import TestCase
from nftledger.db.encoder import encode, decode


class TestEncode(TestCase):
    def test_int_encodes_plainly(self):
        self.assertEqual(encode(5), '5')

    def test_big_int_is_tagged(self):
        self.assertEqual(encode(2 ** 64), '{"__big_int__":"18446744073709551616"}')

    def test_big_int_nested_in_dict_and_list(self):
        value = {'ids': [1, 2 ** 200], 'n': {'x': 2 ** 70}}
        self.assertDictEqual(decode(encode(value)), value)

    def test_bools_are_not_tagged(self):
        self.assertEqual(encode(True), 'true')

    def test_bytes(self):
        self.assertEqual(encode(b'\x15\x0b'), '{"__bytes__":"150b"}')
        self.assertEqual(decode(encode(b'\x15\x0b')), b'\x15\x0b')

    def test_decode_none(self):
        self.assertIsNone(decode(None))

    def test_decode_garbage_returns_none(self):
        self.assertIsNone(decode('{not json'))

    def test_decode_bytes_input(self):
        self.assertEqual(decode(b'"0xabc"'), '0xabc')
