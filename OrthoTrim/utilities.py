#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Common utility functions for various OrthoTrim submodules.
"""

import os
import re
import sys
import shutil
import logging
import tempfile

from io import StringIO
from textwrap import indent
from contextlib import contextmanager
from collections import namedtuple, OrderedDict
from subprocess import PIPE, Popen

from Bio import Phylo, SeqIO
from Bio.Phylo.NewickIO import NewickError
from Bio.Seq import Seq
from Bio.SeqRecord import SeqRecord

LEVEL = logging.INFO
LOGFILE, LOGFILEMODE = '', 'w'

HANDLERS = [logging.StreamHandler(sys.stdout)]
if LOGFILE:
    HANDLERS.append(logging.FileHandler(filename=LOGFILE, mode=LOGFILEMODE))

logging.basicConfig(format='%(asctime)s %(levelname)-8s %(name)s %(message)s',
                    datefmt='%Y-%m-%d %H:%M:%S', handlers=HANDLERS, level=LEVEL)

logger = logging.getLogger('[OrthoTrim]')
warn, info, error = logger.warning, logger.info, logger.error

ENDINGS = ['fa', 'fas', 'fasta', 'aln', 'tre', 'tree', 'newick', 'new',
           'info', 'list', 'txt', 'tsv']
DELIMITER = '|'
FIELD = re.compile(r'^[A-Za-z0-9_]+$')
HEADER = namedtuple('header', 'group taxon annotation')
SEQUENCE = namedtuple('sequence', 'header seq')


class OrthoTrimError(Exception):
    """Base class of all errors raised by OrthoTrim."""


class ToolInvocationFailure(OrthoTrimError):
    """An external program failed to run, exited non-zero or left no output."""


class MalformedHeader(OrthoTrimError):
    """A FASTA header does not follow group_id|taxon_code|annotation."""


class EmptyGroupAfterFilter(OrthoTrimError):
    """A filter removed every sequence of a group."""

    def __init__(self, stage):
        self.stage = stage
        super(EmptyGroupAfterFilter, self).__init__(
            'no sequence survived {}'.format(stage))


def basename(name):
    """
    Removing file extension, if the extension is in ENDINGS.

    :param name: str, a filename.
    :return: str, filename without known extensions for FASTA, NEWICK and
        the diagnostic text files written during a cleaning run.
    """

    name = os.path.basename(name)
    if '.' in name:
        names = name.split('.')
        if names[-1].lower() in ENDINGS:
            return '.'.join(names[:-1])
        else:
            return name
    else:
        return name


def parse_header(text):
    """
    Parse a HaMStR style FASTA header into a HEADER.

    :param text: str, a header line with or without the leading '>', e.g.
        >0001|LGIG|Contig1234.
    :return: namedtuple, in the order of group, taxon, and annotation.

    .. note::

        Exactly three pipe separated fields are required and each of them
        may only contain alphanumeric characters and underscores, otherwise
        MalformedHeader will be raised.
    """

    text = text.strip()
    if text.startswith('>'):
        text = text[1:]
    fields = text.split(DELIMITER)
    if len(fields) != 3:
        raise MalformedHeader('Invalid header {}, expected 3 pipe separated '
                              'fields but got {}.'.format(text, len(fields)))
    for field in fields:
        if not FIELD.match(field):
            raise MalformedHeader('Invalid header {}, field "{}" contains '
                                  'characters other than letters, digits '
                                  'and underscores.'.format(text, field))
    return HEADER(*fields)


def format_header(header, delimiter=DELIMITER):
    """
    Serialize a HEADER, the group field is left out once it has been
    stripped (set to None).
    """

    fields = [header.group, header.taxon, header.annotation]
    return delimiter.join(f for f in fields if f is not None)


def read(fasta):
    """
    Read a FASTA file of an ortholog group.

    :param fasta: str, path to the FASTA file.
    :return: list, a list of SEQUENCE records in file order.
    """

    records = []
    with open(fasta) as handle:
        for record in SeqIO.parse(handle, 'fasta'):
            header = parse_header(record.description)
            records.append(SEQUENCE(header, str(record.seq)))
    return records


def write(records, fasta, delimiter=DELIMITER):
    """
    Write records to a FASTA file, one line per sequence.

    :param records: list, a list of SEQUENCE records.
    :param fasta: str, path to the output file.
    :param delimiter: str, separator used to join header fields.
    :return: str, path to the output file.
    """

    SeqIO.write((SeqRecord(Seq(r.seq), id=format_header(r.header, delimiter),
                           description='') for r in records),
                fasta, 'fasta-2line')
    return fasta


def dump(records, fasta):
    """
    Write records under opaque names (s1, s2, ...) for programs that choke
    on pipes or long names in FASTA headers.

    :return: OrderedDict, opaque name and HEADER pairs in record order.
    """

    mapping = OrderedDict()
    renamed = []
    for i, record in enumerate(records, 1):
        name = 's{}'.format(i)
        mapping[name] = record.header
        renamed.append(SeqRecord(Seq(record.seq), id=name, description=''))
    SeqIO.write(renamed, fasta, 'fasta-2line')
    return mapping


def load(fasta, mapping):
    """
    Read a FASTA file written by an external program from a file prepared
    by ``dump()`` and restore the original headers.

    :param fasta: str, path to the FASTA file.
    :param mapping: dict, opaque name and HEADER pairs returned by ``dump()``.
    :return: list, a list of SEQUENCE records in the order of the file.
    """

    records = []
    with open(fasta) as handle:
        for record in SeqIO.parse(handle, 'fasta'):
            if record.id not in mapping:
                raise ToolInvocationFailure(
                    'Unknown sequence name {} found in {}.'.format(record.id,
                                                                   fasta))
            records.append(SEQUENCE(mapping[record.id], str(record.seq)))
    return records


def execute(args, label, cwd=None, stdout=''):
    """
    Run an external program and wait for it to finish.

    :param args: list, the command line.
    :param label: str, name of the program used in log messages.
    :param cwd: str, working directory of the process.
    :param stdout: str, path to a file for saving the standard output, if
        not set, the standard output is captured and returned.
    :return: str, captured standard output (empty if stdout was redirected).
    """

    info('Running {} using the following command:\n\t{}'.format(
        label, ' '.join(args)))
    try:
        if stdout:
            with open(stdout, 'w') as handle:
                process = Popen(args, cwd=cwd, stdout=handle, stderr=PIPE,
                                universal_newlines=True)
                outs, errs = process.communicate()
        else:
            process = Popen(args, cwd=cwd, stdout=PIPE, stderr=PIPE,
                            universal_newlines=True)
            outs, errs = process.communicate()
    except OSError as err:
        if stdout and os.path.isfile(stdout):
            os.remove(stdout)
        msg = 'Running {} failed, executable {} is empty or invalid:\n\t' \
              '{}'.format(label, args[0], err)
        error(msg)
        raise ToolInvocationFailure(msg)

    if process.returncode:
        if stdout and os.path.isfile(stdout):
            os.remove(stdout)
        msg = indent(errs or outs or 'no message.', prefix='\t')
        error('Running {} failed with exit code {} due to:\n{}'.format(
            label, process.returncode, msg))
        raise ToolInvocationFailure('{} exited with code {}.'.format(
            label, process.returncode))
    return outs or ''


def expect(filename, label):
    """
    Make sure an external program left a non-empty output file.
    """

    if not os.path.isfile(filename) or not os.path.getsize(filename):
        msg = '{} finished but output {} is missing or empty.'.format(
            label, filename)
        error(msg)
        raise ToolInvocationFailure(msg)
    return filename


@contextmanager
def scratch(directory=''):
    """
    Create a temporary directory (inside directory if given) and remove it
    with everything inside upon leaving the context.
    """

    if directory:
        os.makedirs(directory, exist_ok=True)
    wd = tempfile.mkdtemp(dir=directory or None)
    try:
        yield wd
    finally:
        shutil.rmtree(wd, ignore_errors=True)


class Tree(object):
    def __init__(self, tree):
        """
        A class handles phylogenetic trees.

        :param tree: str, a newick tree file or tree string (must start with
            '(' and end with ';').
        """

        if not isinstance(tree, str):
            raise ValueError('Invalid tree, tree should be a string.')

        if os.path.isfile(tree):
            with open(tree) as handle:
                text = handle.read().strip()
        else:
            text = tree.strip()
        if not (text.startswith('(') and text.endswith(';')):
            raise ValueError('Invalid tree: {}, tree should be either a NEWICK '
                             'format tree string or tree file.'.format(tree))

        try:
            tree = Phylo.read(StringIO(text), 'newick')
        except NewickError as err:
            raise ValueError('Invalid NEWICK tree: {}'.format(err))
        self.tree = tree
        self.leaves = len(tree.get_terminals())

    def names(self):
        """Names of the terminal clades (leaves)."""

        return [c.name for c in self.tree.get_terminals()]


if __name__ == '__main__':
    pass
