#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Per sequence alignment statistics from the EMBOSS_ program infoalign.

``report()`` asks infoalign for the name and the percentage of positions that
differ from the consensus (%Change) of every sequence, ``parse()`` turns such
a report into similarity to consensus (100 - %Change), which is what the
divergence filter of a cleaning run compares against its cutoff.

.. _EMBOSS: http://emboss.sourceforge.net/
"""

import sys
import logging

from collections import OrderedDict

from OrthoTrim.utilities import execute, expect

LEVEL = logging.INFO
LOGFILE, LOGFILEMODE = '', 'w'

HANDLERS = [logging.StreamHandler(sys.stdout)]
if LOGFILE:
    HANDLERS.append(logging.FileHandler(filename=LOGFILE, mode=LOGFILEMODE))

logging.basicConfig(format='%(asctime)s %(levelname)-8s %(name)s %(message)s',
                    datefmt='%Y-%m-%d %H:%M:%S', handlers=HANDLERS, level=LEVEL)

logger = logging.getLogger('[OrthoTrim]')
warn, info, error = logger.warning, logger.info, logger.error


def report(msa, outfile, exe='infoalign'):
    """
    Run infoalign over an alignment.

    :param msa: str, path to the alignment file (sequence names must not
        contain pipes).
    :param outfile: str, path to the report output file.
    :param exe: str, path to the executable of infoalign.
    :return: str, path to the report output file.
    """

    args = [exe, '-only', '-name', '-change', '-sequence', msa,
            '-outfile', outfile]
    execute(args, 'infoalign')
    return expect(outfile, 'infoalign')


def parse(filename):
    """
    Parse an infoalign report produced with -only -name -change.

    :param filename: str, path to the report file.
    :return: OrderedDict, sequence name and similarity to the consensus
        (percent) pairs.
    """

    similarities = OrderedDict()
    with open(filename) as handle:
        for line in handle:
            blocks = line.split()
            if not blocks or blocks[0].startswith('#'):
                continue
            try:
                change = float(blocks[-1])
            except ValueError:
                # column titles
                continue
            similarities[blocks[0]] = 100.0 - change
    return similarities


if __name__ == '__main__':
    pass
