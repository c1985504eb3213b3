#!/usr/bin/env python
# -*- coding: utf-8 -*-

import os
import sys
import shutil
import tempfile
import unittest

PATH = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DATA = os.path.join(PATH, 'tests', 'data')

sys.path.insert(0, PATH)
from OrthoTrim.utilities import (basename, parse_header, format_header, read,
                                 write, dump, load, execute, expect, scratch,
                                 Tree, HEADER, SEQUENCE, MalformedHeader,
                                 ToolInvocationFailure)

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))
import fakes
import settings

CLEANUP = settings.CLEANUP


class TestBasename(unittest.TestCase):
    def test_fa(self):
        self.assertEqual('a.name', basename('a.name.fa'))

    def test_fas(self):
        self.assertEqual('a.name', basename('a.name.fas'))

    def test_fasta(self):
        self.assertEqual('a.name', basename('a.name.fasta'))

    def test_tre(self):
        self.assertEqual('a.name', basename('a.name.tre'))

    def test_info(self):
        self.assertEqual('a.name', basename('a.name.info'))

    def test_path(self):
        self.assertEqual('0001', basename(os.path.join('groups', '0001.fa')))

    def test_name(self):
        self.assertEqual('a.name', basename('a.name'))


class TestHeader(unittest.TestCase):
    def test_parse(self):
        self.assertTupleEqual(HEADER('0001', 'LGIG', 'Contig1234'),
                              parse_header('>0001|LGIG|Contig1234'))

    def test_parse_without_marker(self):
        self.assertTupleEqual(HEADER('0001', 'LGIG', 'Contig_1'),
                              parse_header('0001|LGIG|Contig_1\n'))

    def test_too_few_fields(self):
        with self.assertRaises(MalformedHeader):
            parse_header('>0001|LGIG')

    def test_too_many_fields(self):
        with self.assertRaises(MalformedHeader):
            parse_header('>0001|LGIG|Contig1|extra')

    def test_invalid_characters(self):
        for text in ('>0001|LG IG|Contig1', '>0001|LGIG|Contig-1',
                     '>0001||Contig1'):
            with self.assertRaises(MalformedHeader):
                parse_header(text)

    def test_format(self):
        header = HEADER('0001', 'LGIG', 'Contig1234')
        self.assertEqual('0001|LGIG|Contig1234', format_header(header))
        self.assertEqual('LGIG@Contig1234',
                         format_header(header._replace(group=None), '@'))


class TestFasta(unittest.TestCase):
    def setUp(self):
        self.wd = tempfile.mkdtemp()
        self.seq = os.path.join(DATA, 'msa', 'sequence.fa')

    def tearDown(self):
        if CLEANUP:
            shutil.rmtree(self.wd, ignore_errors=True)

    def test_read(self):
        records = read(self.seq)
        self.assertEqual(4, len(records))
        self.assertEqual('0001', records[0].header.group)
        self.assertTrue(all(isinstance(r.seq, str) for r in records))

    def test_write(self):
        records = read(self.seq)
        out = write(records, os.path.join(self.wd, 'out.fa'))
        self.assertListEqual(records, read(out))
        with open(out) as handle:
            lines = handle.read().splitlines()
        self.assertEqual(2 * len(records), len(lines))

    def test_dump_load(self):
        records = read(self.seq)
        out = os.path.join(self.wd, 'opaque.fa')
        mapping = dump(records, out)
        self.assertListEqual(['s1', 's2', 's3', 's4'], list(mapping))
        with open(out) as handle:
            self.assertNotIn('|', handle.read())
        self.assertListEqual(records, load(out, mapping))

    def test_load_subset(self):
        records = read(self.seq)
        out = os.path.join(self.wd, 'opaque.fa')
        mapping = dump(records, out)
        with open(out, 'w') as o:
            o.write('>s3\n{}\n'.format(records[2].seq))
        self.assertListEqual([records[2]], load(out, mapping))

    def test_load_unknown_name(self):
        out = os.path.join(self.wd, 'opaque.fa')
        mapping = dump([SEQUENCE(HEADER('0001', 'LGIG', 'Contig1'), 'MKV')],
                       out)
        with open(out, 'w') as o:
            o.write('>s9\nMKV\n')
        with self.assertRaises(ToolInvocationFailure):
            load(out, mapping)


class TestExecute(unittest.TestCase):
    def setUp(self):
        self.wd = tempfile.mkdtemp()

    def tearDown(self):
        if CLEANUP:
            shutil.rmtree(self.wd, ignore_errors=True)

    def test_capture(self):
        exe = fakes.script(self.wd, 'echo', "print(' '.join(sys.argv[1:]))\n")
        self.assertEqual('a b\n', execute([exe, 'a', 'b'], 'echo'))

    def test_stdout(self):
        exe = fakes.script(self.wd, 'echo', "print('hello')\n")
        out = os.path.join(self.wd, 'out.txt')
        self.assertEqual('', execute([exe], 'echo', stdout=out))
        self.assertEqual(out, expect(out, 'echo'))

    def test_cwd(self):
        exe = fakes.script(self.wd, 'touch', "open('touched', 'w').close()\n")
        sub = os.path.join(self.wd, 'sub')
        os.makedirs(sub)
        execute([exe], 'touch', cwd=sub)
        self.assertTrue(os.path.isfile(os.path.join(sub, 'touched')))

    def test_exit_code(self):
        exe = fakes.script(self.wd, 'fail', """
        print('partial output')
        sys.exit(3)
        """)
        out = os.path.join(self.wd, 'out.txt')
        with self.assertRaises(ToolInvocationFailure):
            execute([exe], 'fail', stdout=out)
        self.assertFalse(os.path.exists(out))

    def test_missing_executable(self):
        with self.assertRaises(ToolInvocationFailure):
            execute([os.path.join(self.wd, 'missing')], 'missing')

    def test_expect_empty(self):
        out = os.path.join(self.wd, 'empty.txt')
        open(out, 'w').close()
        with self.assertRaises(ToolInvocationFailure):
            expect(out, 'empty')
        with self.assertRaises(ToolInvocationFailure):
            expect(os.path.join(self.wd, 'missing.txt'), 'missing')


class TestScratch(unittest.TestCase):
    def test_scratch(self):
        root = tempfile.mkdtemp()
        parent = os.path.join(root, 'parent')
        with scratch(parent) as wd:
            self.assertTrue(os.path.isdir(wd))
            self.assertEqual(parent, os.path.dirname(wd))
        self.assertFalse(os.path.exists(wd))
        self.assertTrue(os.path.isdir(parent))
        shutil.rmtree(root)

    def test_scratch_error(self):
        with self.assertRaises(KeyError):
            with scratch() as wd:
                raise KeyError('boom')
        self.assertFalse(os.path.exists(wd))


class TestTree(unittest.TestCase):
    def test_tree_string(self):
        tree = Tree('((A:0.1,B:0.2):0.05,C:0.3,D:0.1);')
        self.assertEqual(4, tree.leaves)
        self.assertListEqual(['A', 'B', 'C', 'D'], tree.names())

    def test_tree_file(self):
        wd = tempfile.mkdtemp()
        newick = os.path.join(wd, 'tree.tre')
        with open(newick, 'w') as o:
            o.write('(LGIG@Contig1:0.1,CTEL@Contig2:0.2);\n')
        self.assertListEqual(['LGIG@Contig1', 'CTEL@Contig2'],
                             Tree(newick).names())
        shutil.rmtree(wd)

    def test_invalid_tree(self):
        for tree in ('A,B;', '(A,B)', 1):
            with self.assertRaises(ValueError):
                Tree(tree)


if __name__ == '__main__':
    unittest.main()
