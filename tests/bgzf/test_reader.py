import io
import os
import tempfile
import warnings
from unittest import TestCase

from rabgzf.reader import Reader, block_size, count_blocks, inflate_all_blocks, inflate_all_to_text, inflate_block, \
    inflate_block_to_text, inflate_region, inflate_region_to_text, next_block_offset
from rabgzf.source import Source
from rabgzf.util import EMPTY_BLOCK, InvalidArgument, InvalidBGZF, ReadError, TruncatedFileWarning
from rabgzf.writer import append_eof_block, deflate_block

from .data import BLOCKS, BLOCK_OFFSETS, BLOCK_VALID, EOF_OFFSET, MULTI_BLOCK, PAYLOADS


class TestNavigation(TestCase):
    def test_block_size(self):
        self.assertEqual(block_size(MULTI_BLOCK, 0), len(BLOCKS[0]))
        self.assertEqual(block_size(MULTI_BLOCK, EOF_OFFSET), 28)
        block = deflate_block(b'some payload')
        self.assertEqual(block_size(block, 0), len(block))

    def test_next_block_offset(self):
        self.assertEqual(next_block_offset(MULTI_BLOCK, 0), BLOCK_OFFSETS[1])
        self.assertEqual(next_block_offset(MULTI_BLOCK, BLOCK_OFFSETS[2]), EOF_OFFSET)
        self.assertEqual(next_block_offset(MULTI_BLOCK, EOF_OFFSET), len(MULTI_BLOCK))

    def test_not_a_block(self):
        with self.assertRaises(InvalidBGZF):
            block_size(MULTI_BLOCK, 1)

    def test_beyond_source(self):
        with self.assertRaises(ReadError):
            next_block_offset(MULTI_BLOCK, len(MULTI_BLOCK))
        with self.assertRaises(ReadError):
            block_size(MULTI_BLOCK, len(MULTI_BLOCK) - 10)


class TestCountBlocks(TestCase):
    def test_single_block(self):
        self.assertEqual(count_blocks(append_eof_block(deflate_block(b'data'))), 2)

    def test_multi_block(self):
        self.assertEqual(count_blocks(MULTI_BLOCK), 4)

    def test_eof_only(self):
        self.assertEqual(count_blocks(EMPTY_BLOCK), 1)

    def test_ab_cd(self):
        source = append_eof_block(deflate_block(b'AB') + deflate_block(b'CD'))
        self.assertEqual(count_blocks(source), 3)

    def test_missing_eof(self):
        with self.assertWarns(TruncatedFileWarning):
            self.assertEqual(count_blocks(BLOCK_VALID), 1)

    def test_last_block_overshoots(self):
        with self.assertRaises(InvalidBGZF):
            count_blocks(MULTI_BLOCK[:-5])

    def test_trailing_garbage(self):
        with self.assertRaises(InvalidBGZF):
            count_blocks(MULTI_BLOCK + bytes(20))

    def test_trailing_partial_header(self):
        with self.assertRaises(ReadError):
            count_blocks(MULTI_BLOCK + b'\x1f\x8b')


class TestInflateBlock(TestCase):
    def test_inflate_block(self):
        for offset, payload in zip(BLOCK_OFFSETS, PAYLOADS):
            self.assertEqual(inflate_block(MULTI_BLOCK, offset), payload)
        self.assertEqual(inflate_block(MULTI_BLOCK, EOF_OFFSET), b'')

    def test_round_trip(self):
        for payload in (b'', b'x', os.urandom(1000), b'ACGT' * 16384):
            self.assertEqual(inflate_block(deflate_block(payload), 0), payload)

    def test_hello(self):
        block = deflate_block(b'hello')
        self.assertEqual(inflate_block_to_text(block, 0), 'hello')

    def test_text_is_latin1(self):
        self.assertEqual(inflate_block_to_text(deflate_block(b'caf\xe9'), 0), 'caf\xe9')

    def test_corrupt_data(self):
        corrupt = bytearray(BLOCK_VALID)
        corrupt[-8] ^= 0xff
        with self.assertRaises(InvalidBGZF):
            inflate_block(bytes(corrupt), 0)

    def test_out_of_range(self):
        with self.assertRaises(ReadError):
            inflate_block(MULTI_BLOCK, len(MULTI_BLOCK) + 100)

    def test_truncated_block(self):
        with self.assertRaises(ReadError):
            inflate_block(BLOCK_VALID[:-3], 0)


class TestInflateRegion(TestCase):
    def test_whole_region(self):
        data, last = inflate_region(MULTI_BLOCK, 0, BLOCK_OFFSETS[2])
        self.assertEqual(data, b''.join(PAYLOADS))
        self.assertEqual(last, len(PAYLOADS[2]))

    def test_equals_individual_blocks(self):
        data, _ = inflate_region(MULTI_BLOCK, 0, EOF_OFFSET)
        self.assertEqual(data, b''.join(inflate_block(MULTI_BLOCK, offset) for offset in BLOCK_OFFSETS + (EOF_OFFSET,)))

    def test_end_inside_block(self):
        # The block starting at the second offset is included even though it extends past the region end
        data, last = inflate_region(MULTI_BLOCK, 0, BLOCK_OFFSETS[1] + 1)
        self.assertEqual(data, PAYLOADS[0] + PAYLOADS[1])
        self.assertEqual(last, len(PAYLOADS[1]))

    def test_single_block(self):
        data, last = inflate_region(MULTI_BLOCK, BLOCK_OFFSETS[1], BLOCK_OFFSETS[1])
        self.assertEqual(data, PAYLOADS[1])
        self.assertEqual(last, len(PAYLOADS[1]))

    def test_reversed_region(self):
        with self.assertRaises(InvalidArgument):
            inflate_region(MULTI_BLOCK, BLOCK_OFFSETS[1], 0)

    def test_region_past_source(self):
        with self.assertRaises(ReadError):
            inflate_region(MULTI_BLOCK, 0, len(MULTI_BLOCK) + 10)

    def test_region_to_text(self):
        text, last = inflate_region_to_text(MULTI_BLOCK, BLOCK_OFFSETS[1], EOF_OFFSET - 1)
        self.assertEqual(text, 'BBBBBBCC')
        self.assertEqual(last, 2)

    def test_inflate_all_blocks(self):
        data, last = inflate_all_blocks(MULTI_BLOCK)
        self.assertEqual(data, b''.join(PAYLOADS))
        self.assertEqual(last, 0, "Last block is the EOF block")

    def test_ab_cd(self):
        source = append_eof_block(deflate_block(b'AB') + deflate_block(b'CD'))
        self.assertEqual(inflate_all_to_text(source), ('ABCD', 0))

    def test_inflate_all_missing_eof(self):
        with self.assertWarns(TruncatedFileWarning):
            data, last = inflate_all_blocks(b''.join(BLOCKS))
        self.assertEqual(data, b''.join(PAYLOADS))
        self.assertEqual(last, len(PAYLOADS[-1]))

    def test_empty_source(self):
        with self.assertWarns(TruncatedFileWarning):
            with self.assertRaises(InvalidArgument):
                inflate_all_blocks(b'')

    def test_no_warning_with_eof(self):
        with warnings.catch_warnings():
            warnings.simplefilter('error', TruncatedFileWarning)
            inflate_all_blocks(MULTI_BLOCK)


class TestSources(TestCase):
    def test_stream(self):
        stream = io.BytesIO(MULTI_BLOCK)
        self.assertEqual(count_blocks(Source(stream)), 4)
        self.assertEqual(inflate_all_to_text(Source(stream)), ('AAAABBBBBBCC', 0))

    def test_path(self):
        fd, path = tempfile.mkstemp()
        try:
            with os.fdopen(fd, 'wb') as fh:
                fh.write(MULTI_BLOCK)
            with Source(path) as source:
                self.assertEqual(inflate_block(source, BLOCK_OFFSETS[2]), PAYLOADS[2])
        finally:
            os.unlink(path)


class TestReader(TestCase):
    def test_iterate(self):
        reader = Reader(MULTI_BLOCK)
        blocks = list(reader)
        self.assertEqual(blocks, list(zip(BLOCK_OFFSETS + (EOF_OFFSET,), PAYLOADS + (b'',))))
        self.assertEqual(reader.total_in, len(MULTI_BLOCK))
        self.assertEqual(reader.total_out, sum(len(payload) for payload in PAYLOADS))

    def test_offset(self):
        self.assertEqual([offset for offset, _ in Reader(MULTI_BLOCK, BLOCK_OFFSETS[2])], [BLOCK_OFFSETS[2], EOF_OFFSET])

    def test_empty_source(self):
        self.assertEqual(list(Reader(b'')), [])
