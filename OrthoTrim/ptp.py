#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Removing paralogous sequences from an ortholog group using PhyloTreePruner.

PhyloTreePruner takes a gene tree and the alignment it was inferred from,
collapses nodes with support below the bootstrap cutoff, and keeps the
largest subtree in which every taxon is monophyletic. Its usage is::

    java PhyloTreePruner tree min_number_of_taxa fasta bootstrap_cutoff r/u

where r (redundant) keeps all sequences of a taxon inside the subtree so a
later tool (e.g. SCaFoS) picks the best one, and u (unique) keeps only the
longest sequence of each taxon. Sequence names must be taxon@identifier.
Trees should be correctly rooted.
"""

import os
import sys
import glob
import shutil
import logging

from OrthoTrim.utilities import execute, scratch, EmptyGroupAfterFilter

LEVEL = logging.INFO
LOGFILE, LOGFILEMODE = '', 'w'

HANDLERS = [logging.StreamHandler(sys.stdout)]
if LOGFILE:
    HANDLERS.append(logging.FileHandler(filename=LOGFILE, mode=LOGFILEMODE))

logging.basicConfig(format='%(asctime)s %(levelname)-8s %(name)s %(message)s',
                    datefmt='%Y-%m-%d %H:%M:%S', handlers=HANDLERS, level=LEVEL)

logger = logging.getLogger('[OrthoTrim]')
warn, info, error = logger.warning, logger.info, logger.error

TIEBREAKS = {'u': 'unique', 'r': 'redundant'}


def ptp(tree, msa, outfile, minimum=50, bootstrap=0.95, tiebreak='u',
        java='java', classpath='/usr/local/bin/PhyloTreePruner'):
    """
    Prune paralogs from an ortholog group.

    :param tree: str, path to the NEWICK gene tree of the group.
    :param msa: str, path to the alignment of the group (FASTA format,
        sequence names in taxon@identifier form).
    :param outfile: str, path to the pruned alignment output file.
    :param minimum: int, minimum number of taxa to keep the group.
    :param bootstrap: float, nodes with lower support are collapsed.
    :param tiebreak: str, u (unique) or r (redundant).
    :param java: str, path to the java executable.
    :param classpath: str, directory holding PhyloTreePruner.class.
    :return: str, path to the pruned alignment output file.

    A non-zero exit raises ToolInvocationFailure, while a normal exit
    without a pruned alignment (the group fell below minimum taxa) raises
    EmptyGroupAfterFilter.
    """

    if tiebreak not in TIEBREAKS:
        raise ValueError('Invalid tiebreak {}, expected u (unique) or r '
                         '(redundant).'.format(tiebreak))

    with scratch(os.path.dirname(os.path.abspath(outfile))) as wd:
        tname, aname = os.path.basename(tree), os.path.basename(msa)
        shutil.copy(tree, os.path.join(wd, tname))
        shutil.copy(msa, os.path.join(wd, aname))
        info('Pruning paralogs from {} using PhyloTreePruner ({} mode).'.format(
            msa, TIEBREAKS[tiebreak]))
        args = [java, '-cp', classpath, 'PhyloTreePruner', tname,
                str(minimum), aname, str(bootstrap), tiebreak]
        execute(args, 'PhyloTreePruner', cwd=wd)
        pruned = glob.glob(os.path.join(wd, '*_pruned.fa'))
        if not pruned or not os.path.getsize(pruned[0]):
            # fewer than minimum taxa left after pruning
            warn('PhyloTreePruner left no pruned alignment for {}.'.format(
                msa))
            raise EmptyGroupAfterFilter('paralog pruning')
        shutil.copy(pruned[0], outfile)
    return outfile


if __name__ == '__main__':
    pass
