#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Inferring a maximum-likelihood gene tree for each cleaned ortholog group
using FastTree_ (or its multi-threaded build FastTreeMP).

The minimum requirement for using this module is a multiple sequence
alignment (MSA) file and an executable of FastTree. Trees are inferred with
the -slow -gamma settings and the output is checked to be a readable NEWICK
tree before it is handed over to PhyloTreePruner.

.. TODO::
    FastTree does not accept FASTA files which have a space between '>' and
    the sequence name, alignments written by OrthoTrim never have one but
    alignments given to ``mlt()`` directly are not checked.

.. _FastTree: http://www.microbesonline.org/fasttree/
"""

import os
import sys
import logging
import argparse

from Bio import SeqIO

from OrthoTrim.utilities import (basename, execute, expect, OrthoTrimError,
                                 ToolInvocationFailure, Tree)

LEVEL = logging.INFO
LOGFILE, LOGFILEMODE = '', 'w'

HANDLERS = [logging.StreamHandler(sys.stdout)]
if LOGFILE:
    HANDLERS.append(logging.FileHandler(filename=LOGFILE, mode=LOGFILEMODE))

logging.basicConfig(format='%(asctime)s %(levelname)-8s %(name)s %(message)s',
                    datefmt='%Y-%m-%d %H:%M:%S', handlers=HANDLERS, level=LEVEL)

logger = logging.getLogger('[OrthoTrim]')
warn, info, error = logger.warning, logger.info, logger.error


def fasttree(exe, msa, outfile):
    """
    Infer ML phylogenetic tree using FastTree.
    """

    msa = os.path.abspath(msa)
    info('Inferring ML tree for {} using FastTree.'.format(msa))
    args = [exe, '-slow', '-gamma', os.path.basename(msa)]
    execute(args, 'FastTree', cwd=os.path.dirname(msa), stdout=outfile)
    expect(outfile, 'FastTree')
    try:
        tree = Tree(outfile)
    except ValueError as err:
        msg = 'FastTree output {} is not a NEWICK tree: {}'.format(
            outfile, err)
        error(msg)
        raise ToolInvocationFailure(msg)

    with open(msa) as handle:
        rows = sorted(record.id for record in SeqIO.parse(handle, 'fasta'))
    if sorted(tree.names()) != rows:
        msg = 'Leaves of FastTree output {} do not match the sequences of ' \
              '{}.'.format(outfile, msa)
        error(msg)
        raise ToolInvocationFailure(msg)
    info('Successfully save inferred ML tree ({} leaves) to {}.'.format(
        tree.leaves, outfile))
    return outfile


def mlt(exe, msa, outfile='', verbose=False):
    """
    Common interface for inferring ML phylogenetic tree.

    :param exe: str, path of the executable of FastTree (or FastTreeMP).
    :param msa: str, path of the multiple sequence alignment (FASTA) file.
    :param outfile: pathname of the output ML tree. If not set, default name
        [basename].tre, where basename is the filename of the alignment file
        without extension.
    :param verbose: bool, invoke verbose or silent process mode, default:
        False, silent mode.
    :return: path of the maximum-likelihood tree file.
    """

    level = logging.INFO if verbose else logging.ERROR
    logger.setLevel(level)

    if not exe:
        error('The exe of a tree inference program is empty.')
        raise ToolInvocationFailure('Empty tree inference executable.')
    if not os.path.isfile(msa):
        error('Alignment {} is not a file or does not exist.'.format(msa))
        raise OrthoTrimError('Alignment {} does not exist.'.format(msa))

    msa = os.path.abspath(msa)
    if not outfile:
        outfile = os.path.join(os.path.dirname(msa),
                               '{}.tre'.format(basename(msa)))
    return fasttree(exe, msa, os.path.abspath(outfile))


def main():
    des = 'Infer maximum likelihood gene tree from an ortholog group alignment.'
    epilog = """
The minimum requirement for running orthotrim-mlt is a multiple sequence
alignment (MSA) file and an executable of FastTree (or FastTreeMP).

Without specifying the output, the tree will be saved to a file named in the
format of [basename].tre next to the alignment file.
"""
    formatter = argparse.RawDescriptionHelpFormatter
    parse = argparse.ArgumentParser(description=des, prog='orthotrim-mlt',
                                    usage='%(prog)s EXECUTABLE MSA [OPTIONS]',
                                    formatter_class=formatter,
                                    epilog=epilog)

    parse.add_argument('EXECUTABLE',
                       help='Pathname of the executable of FastTree.')
    parse.add_argument('MSA',
                       help='Pathname of the alignment file in fasta format.')
    parse.add_argument('-o', '--output',
                       help='Pathname of the ML tree output file.')
    parse.add_argument('-v', '--verbose', action='store_true',
                       help='Invoke verbose or silent (default) process mode.')

    args = parse.parse_args()
    try:
        mlt(args.EXECUTABLE, args.MSA, outfile=args.output,
            verbose=args.verbose)
    except OrthoTrimError:
        sys.exit(1)


if __name__ == '__main__':
    main()
