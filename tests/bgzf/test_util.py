import os
import tempfile
from unittest import TestCase

from rabgzf.util import EMPTY_BLOCK, InvalidArgument, ReadError, concat, concat_all, has_eof_marker, is_bgzf, \
    open_buffer, to_text

from .data import BLOCK_VALID


class TestConcat(TestCase):
    def test_concat(self):
        self.assertEqual(concat(b'AB', bytearray(b'CD')), b'ABCD')
        self.assertEqual(concat(b'', b''), b'')
        self.assertEqual(concat(memoryview(b'\x00\xff'), b'\x01'), b'\x00\xff\x01')

    def test_concat_all(self):
        self.assertEqual(concat_all([b'A', b'', bytearray(b'BC'), b'D']), b'ABCD')
        self.assertEqual(concat_all(iter([b'A', b'B'])), b'AB')

    def test_concat_all_single(self):
        buffer = bytearray(b'only')
        self.assertIs(concat_all([buffer]), buffer, "Single buffer should not be copied")

    def test_concat_all_empty(self):
        with self.assertRaises(InvalidArgument):
            concat_all([])


class TestText(TestCase):
    def test_to_text(self):
        self.assertEqual(to_text(b'hello'), 'hello')
        self.assertEqual(to_text(b''), '')

    def test_one_character_per_byte(self):
        text = to_text(bytes(range(256)))
        self.assertEqual(len(text), 256)
        self.assertEqual([ord(c) for c in text], list(range(256)))
        # UTF-8 sequences are not decoded
        self.assertEqual(to_text('é'.encode('utf-8')), '\xc3\xa9')


class TestMarkers(TestCase):
    def test_is_bgzf(self):
        self.assertTrue(is_bgzf(EMPTY_BLOCK))
        self.assertTrue(is_bgzf(b'xx' + BLOCK_VALID, 2))
        self.assertFalse(is_bgzf(b'BAM\x01'))
        self.assertFalse(is_bgzf(b''))

    def test_has_eof_marker(self):
        self.assertTrue(has_eof_marker(EMPTY_BLOCK))
        self.assertTrue(has_eof_marker(BLOCK_VALID + EMPTY_BLOCK))
        self.assertFalse(has_eof_marker(BLOCK_VALID))
        self.assertFalse(has_eof_marker(EMPTY_BLOCK[1:]))


class TestOpenBuffer(TestCase):
    def setUp(self):
        fd, self.path = tempfile.mkstemp()
        os.close(fd)

    def tearDown(self):
        os.unlink(self.path)

    def test_open_buffer(self):
        with open(self.path, 'wb') as fh:
            fh.write(BLOCK_VALID)
        buffer = open_buffer(self.path)
        try:
            self.assertEqual(buffer[:], BLOCK_VALID)
        finally:
            buffer.close()

    def test_empty_file(self):
        with self.assertRaises(ReadError):
            open_buffer(self.path)
