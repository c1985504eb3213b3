#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Masking of randomly similar (unreliable) alignment columns using Aliscore
and cutting the masked columns out using ALICUT.

Both programs are Perl scripts that write their outputs next to the input
in the current working directory, so every run happens inside a temporary
directory. Aliscore diagnostics (the .txt lists and profiles) can be kept by
setting a diagnostics directory; the .svg and .xls outputs are discarded.
"""

import os
import sys
import glob
import shutil
import logging

from OrthoTrim.utilities import execute, expect, scratch

LEVEL = logging.INFO
LOGFILE, LOGFILEMODE = '', 'w'

HANDLERS = [logging.StreamHandler(sys.stdout)]
if LOGFILE:
    HANDLERS.append(logging.FileHandler(filename=LOGFILE, mode=LOGFILEMODE))

logging.basicConfig(format='%(asctime)s %(levelname)-8s %(name)s %(message)s',
                    datefmt='%Y-%m-%d %H:%M:%S', handlers=HANDLERS, level=LEVEL)

logger = logging.getLogger('[OrthoTrim]')
warn, info, error = logger.warning, logger.info, logger.error

ALISCORE = '/usr/local/bin/Aliscore.02.2.pl'
ALICUT = '/usr/local/bin/ALICUT_V2.3.pl'


def mask(msa, outfile, diagnostics='', perl='perl', aliscore=ALISCORE,
         alicut=ALICUT):
    """
    Remove unreliable columns from an alignment.

    :param msa: str, path to the alignment file (in FASTA format, sequence
        names must not contain pipes).
    :param outfile: str, path to the masked alignment output file.
    :param diagnostics: str, directory for saving Aliscore .txt files.
    :param perl: str, path to the perl executable.
    :param aliscore: str, path to Aliscore.02.2.pl.
    :param alicut: str, path to ALICUT_V2.3.pl.
    :return: str, path to the masked alignment output file.
    """

    name = os.path.basename(msa)
    with scratch(os.path.dirname(os.path.abspath(outfile))) as wd:
        shutil.copy(msa, os.path.join(wd, name))
        info('Masking alignment {} using Aliscore and ALICUT.'.format(msa))
        execute([perl, aliscore, '-i', name], 'Aliscore', cwd=wd)
        execute([perl, alicut, '-s'], 'ALICUT', cwd=wd)
        cut = expect(os.path.join(wd, 'ALICUT_{}'.format(name)), 'ALICUT')
        shutil.copy(cut, outfile)

        if diagnostics:
            if not os.path.isdir(diagnostics):
                os.makedirs(diagnostics)
            for txt in glob.glob(os.path.join(wd, '*.txt')):
                shutil.copy(txt, diagnostics)
    return outfile


if __name__ == '__main__':
    pass
