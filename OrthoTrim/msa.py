#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
This module provides the sequence set programs run before and during
alignment of an ortholog group: uniqHaplo for collapsing redundant
sequences and MAFFT_ for multiple sequence alignment.

Users are only asked to provide the program's executable and a sequence
file in FASTA format. Both ``collapse()`` and ``msa()`` always return the
pathname of the output file or raise ``ToolInvocationFailure`` with an error
message logged.

.. _MAFFT: https://mafft.cbrc.jp/alignment/software/
"""

import os
import sys
import logging
import argparse

from OrthoTrim.utilities import (basename, execute, expect, OrthoTrimError,
                                 ToolInvocationFailure)

LEVEL = logging.INFO
LOGFILE, LOGFILEMODE = '', 'w'

HANDLERS = [logging.StreamHandler(sys.stdout)]
if LOGFILE:
    HANDLERS.append(logging.FileHandler(filename=LOGFILE, mode=LOGFILEMODE))

logging.basicConfig(format='%(asctime)s %(levelname)-8s %(name)s %(message)s',
                    datefmt='%Y-%m-%d %H:%M:%S', handlers=HANDLERS, level=LEVEL)

logger = logging.getLogger('[OrthoTrim]')
warn, info, error = logger.warning, logger.info, logger.error


def mafft(exe, seq, outfile):
    """
    Align multiple sequences using MAFFT (L-INS-i like iterative refinement).

    :param exe: str, path to the executable of MAFFT.
    :param seq: str, path to the multiple sequence file (must in FASTA format).
    :param outfile: str, path to the aligned sequence output file.
    :return: str, path to the aligned sequence output file (in FASTA format).
    """

    args = [exe, '--quiet', '--auto', '--localpair', '--maxiterate', '1000',
            seq]
    execute(args, 'MAFFT', stdout=outfile)
    return expect(outfile, 'MAFFT')


def msa(exe, seq, outfile='', verbose=False):
    """
    General use function for multiple sequence alignment (MSA).

    :param exe: str, path to the executable of MAFFT.
    :param seq: str, path to the multiple sequence file (must in FASTA format).
    :param outfile: str, path to the aligned sequence output (FASTA) file,
        default: [basename].mafft.fa, where basename is the filename of the
        sequence file without known FASTA file extension.
    :param verbose: bool, invoke verbose or silent process mode,
        default: False, silent mode.
    :return: str, path to the aligned sequence output file (in FASTA format).
    """

    level = logging.INFO if verbose else logging.ERROR
    logger.setLevel(level)

    if not exe:
        error('Invalid aligner executable (exe), empty string, sequence '
              'alignment aborted.')
        raise ToolInvocationFailure('Empty aligner executable.')
    if not os.path.isfile(seq):
        error('Sequence: {} is not a file or does not exist.'.format(seq))
        raise OrthoTrimError('Sequence {} does not exist.'.format(seq))

    sequence = os.path.abspath(seq)
    if not outfile:
        outfile = os.path.join(os.path.dirname(sequence),
                               '{}.mafft.fa'.format(basename(sequence)))
    info('Aligning sequence {} using MAFFT.'.format(sequence))
    outfile = mafft(exe, sequence, outfile)
    info('Successfully align sequence, alignment was saved to '
         '{}.'.format(outfile))
    return outfile


def collapse(exe, seq, outfile):
    """
    Collapse identical sequences using uniqHaplo.

    :param exe: str, path to uniqHaplo.pl (must be executable).
    :param seq: str, path to the sequence file (in FASTA format).
    :param outfile: str, path to the output file.
    :return: str, path to the output file.
    """

    info('Removing redundant sequences in {} using uniqHaplo.'.format(seq))
    execute([exe, '-a', seq], 'uniqHaplo', stdout=outfile)
    return expect(outfile, 'uniqHaplo')


def main():
    des = 'Align multiple sequences of an ortholog group using MAFFT.'
    epilog = """
Only FASTA format is the acceptable sequence file format.

Without specifying the alignment output, alignment will be saved to a file
named in the format of [basename].mafft.fa, where basename is the filename of
the sequence file without extension.

Under silent process mode, only errors was logged, while under verbose mode,
all errors, warnings and information about processing details will be logged.
"""

    formatter = argparse.RawDescriptionHelpFormatter
    parse = argparse.ArgumentParser(description=des, prog='orthotrim-msa',
                                    usage='%(prog)s EXECUTABLE SEQUENCE',
                                    formatter_class=formatter,
                                    epilog=epilog)

    parse.add_argument('EXECUTABLE',
                       help='path to the executable of MAFFT.')
    parse.add_argument('SEQUENCE',
                       help='Path to the multiple sequence input file '
                            '(must in FASTA format).')
    parse.add_argument('-o',
                       help='Path to the aligned multiple sequence output '
                            'file (in FASTA format).')
    parse.add_argument('-v', action='store_true',
                       help='Invoke verbose or silent (default) process mode.')

    args = parse.parse_args()
    try:
        msa(args.EXECUTABLE, args.SEQUENCE, outfile=args.o, verbose=args.v)
    except OrthoTrimError:
        sys.exit(1)


if __name__ == '__main__':
    main()
