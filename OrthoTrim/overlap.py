#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Removing sequences that do not overlap with all other sequences of an
alignment by at least 20 amino acids, using the AlignmentCompare Java class.

AlignmentCompare rewrites the alignment in place and leaves a scratch file
(myTempFile.txt) in its working directory, so it always runs on a copy inside
a temporary directory. It is run again until the number of sequences stops
changing.
"""

import os
import sys
import shutil
import logging

from Bio import SeqIO

from OrthoTrim.utilities import execute, scratch

LEVEL = logging.INFO
LOGFILE, LOGFILEMODE = '', 'w'

HANDLERS = [logging.StreamHandler(sys.stdout)]
if LOGFILE:
    HANDLERS.append(logging.FileHandler(filename=LOGFILE, mode=LOGFILEMODE))

logging.basicConfig(format='%(asctime)s %(levelname)-8s %(name)s %(message)s',
                    datefmt='%Y-%m-%d %H:%M:%S', handlers=HANDLERS, level=LEVEL)

logger = logging.getLogger('[OrthoTrim]')
warn, info, error = logger.warning, logger.info, logger.error


def _count(fasta):
    with open(fasta) as handle:
        return sum(1 for _ in SeqIO.parse(handle, 'fasta'))


def overlap(msa, outfile, java='java', classpath='/usr/local/bin'):
    """
    Iteratively remove non-overlapping sequences from an alignment.

    :param msa: str, path to the alignment file (in FASTA format).
    :param outfile: str, path to the filtered alignment output file.
    :param java: str, path to the java executable.
    :param classpath: str, directory holding AlignmentCompare.class.
    :return: str, path to the filtered alignment output file.
    """

    name = os.path.basename(msa)
    with scratch(os.path.dirname(os.path.abspath(outfile))) as wd:
        aln = os.path.join(wd, name)
        shutil.copy(msa, aln)
        args = [java, '-cp', classpath, 'AlignmentCompare', name]
        before, rounds = _count(aln), 0
        while True:
            execute(args, 'AlignmentCompare', cwd=wd)
            rounds += 1
            after = _count(aln)
            if after == before:
                break
            before = after
        info('Overlap filter for {} reached a fixed point after {} round(s) '
             'with {} sequences.'.format(msa, rounds, after))
        shutil.copy(aln, outfile)
    return outfile


if __name__ == '__main__':
    pass
