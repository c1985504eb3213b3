#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Deterministic stand-ins for the external programs used by a cleaning run.

Every fake follows the call signature of the corresponding member of
``OrthoTrim.pipeline.TOOLS`` and remembers the groups it was called for, so
tests can check which groups reached which stage.
"""

import os
import sys
import shutil
import textwrap

from Bio import SeqIO
from Bio.Seq import Seq

from OrthoTrim.pipeline import TOOLS
from OrthoTrim.utilities import basename, execute


def _records(fasta):
    with open(fasta) as handle:
        return list(SeqIO.parse(handle, 'fasta'))


def _write(records, fasta):
    SeqIO.write(records, fasta, 'fasta-2line')
    return fasta


class Tool(object):
    def __init__(self):
        self.groups = []

    def __call__(self, *args, **kwargs):
        self.groups.append(basename(args[0]))
        return self.run(*args, **kwargs)

    def run(self, *args, **kwargs):
        raise NotImplementedError


class Collapser(Tool):
    """Keep the first of identical sequences regardless of their names."""

    def run(self, seq, outfile):
        seen, records = set(), []
        for record in _records(seq):
            if str(record.seq) not in seen:
                seen.add(str(record.seq))
                records.append(record)
        return _write(records, outfile)


class Aligner(Tool):
    """Pad every sequence with trailing gaps to the longest one."""

    def run(self, seq, outfile):
        records = _records(seq)
        width = max(len(r.seq) for r in records)
        for record in records:
            record.seq = Seq(str(record.seq) + '-' * (width - len(record.seq)))
        return _write(records, outfile)


class Masker(Tool):
    def run(self, msa, outfile, diagnostics=''):
        shutil.copy(msa, outfile)
        if diagnostics:
            name = '{}_List_l_all.txt'.format(os.path.basename(msa))
            with open(os.path.join(diagnostics, name), 'w') as o:
                o.write('\n')
        return outfile


class Reporter(Tool):
    """
    Write an infoalign like report, %Change of a sequence is looked up in
    changes by its residues (gaps removed), 0 by default.
    """

    def __init__(self, changes=None):
        super(Reporter, self).__init__()
        self.changes = changes or {}

    def run(self, msa, outfile):
        with open(outfile, 'w') as o:
            o.write('# Name\t%Change\n')
            for record in _records(msa):
                residues = str(record.seq).replace('-', '')
                o.write('{}\t{:.6f}\n'.format(
                    record.id, self.changes.get(residues, 0.0)))
        return outfile


class Overlapper(Tool):
    """Keep the first keep sequences, or all of them if keep is not set."""

    def __init__(self, keep=None):
        super(Overlapper, self).__init__()
        self.keep = keep

    def run(self, msa, outfile):
        records = _records(msa)
        if self.keep is not None:
            records = records[:self.keep]
        return _write(records, outfile)


class Builder(Tool):
    def run(self, msa, outfile):
        names = [r.id for r in _records(msa)]
        with open(outfile, 'w') as o:
            o.write('({});\n'.format(','.join(names)))
        return outfile


class Pruner(Tool):
    def __init__(self):
        super(Pruner, self).__init__()
        self.options = []

    def run(self, tree, msa, outfile, minimum=50, bootstrap=0.95,
            tiebreak='u'):
        self.options.append((minimum, bootstrap, tiebreak))
        shutil.copy(msa, outfile)
        return outfile


class Failing(Tool):
    """Run a program that exits with an error."""

    def run(self, *args, **kwargs):
        return execute([sys.executable, '-c', 'import sys; sys.exit(3)'],
                       'failing tool')


def tools(**kwargs):
    """A TOOLS tuple of fakes, members can be replaced by keyword."""

    fakes = dict(collapser=None, aligner=Aligner(), masker=Masker(),
                 reporter=Reporter(), overlapper=Overlapper(),
                 builder=Builder(), pruner=Pruner())
    fakes.update(kwargs)
    return TOOLS(**fakes)


def script(directory, name, body):
    """
    Write an executable Python script standing in for an external program.
    """

    path = os.path.join(directory, name)
    with open(path, 'w') as o:
        o.write('#!{}\nimport sys\n{}'.format(sys.executable,
                                              textwrap.dedent(body)))
    os.chmod(path, 0o755)
    return path


if __name__ == '__main__':
    pass
