#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
This module takes the output of HaMStR and performs several cleaning steps to
remove ortholog groups and sequences that are not suitable for phylogenomic
analysis. The final products are trimmed amino acid alignments (and gene
trees) of putatively orthologous groups. Function ``clean()`` is built on top
of the other modules. Sequence alignment, alignment masking, divergence
reporting, overlap filtering, tree inference and paralog pruning are done by
external programs, which are bound into a TOOLS tuple by ``toolkit()``.

Input is a directory of FASTA files (extension must be .fa), each file is one
ortholog group and its headers must be in the format of
>orthology_group_ID|species_name_abbreviation|annotation_or_sequence_ID, e.g.
>0001|LGIG|Contig1234. Headers may not include spaces or characters other
than letters, digits and underscores (pipes are field delimiters only).

Stages run strictly in the following order::

    backup, minimum sequence length, minimum taxa (1), taxon listing,
    redundant sequences, 5' trim, 3' trim, alignment, unwrap, masking,
    unwrap, divergence, misaligned ends, sparse columns, minimum alignment
    length, overlap, minimum taxa (2), header simplification, tree,
    paralog pruning

Groups failing a checkpoint are written into rejected_[bucket] directories
and listed in rejections.tsv, they are never looked at again.
"""

import os
import sys
import glob
import shutil
import logging
import argparse

from functools import partial
from collections import namedtuple, OrderedDict
from concurrent.futures import ThreadPoolExecutor

from OrthoTrim import filters, msa, mask, divergence, overlap, mlt, ptp
from OrthoTrim.utilities import (basename, read, write, dump, load, scratch,
                                 format_header, OrthoTrimError,
                                 MalformedHeader, ToolInvocationFailure,
                                 EmptyGroupAfterFilter)

LEVEL = logging.INFO
LOGFILE, LOGFILEMODE = '', 'w'

HANDLERS = [logging.StreamHandler(sys.stdout)]
if LOGFILE:
    HANDLERS.append(logging.FileHandler(filename=LOGFILE, mode=LOGFILEMODE))

logging.basicConfig(format='%(asctime)s %(levelname)-8s %(name)s %(message)s',
                    datefmt='%Y-%m-%d %H:%M:%S', handlers=HANDLERS, level=LEVEL)

logger = logging.getLogger('[OrthoTrim]')
warn, info, error = logger.warning, logger.info, logger.error

TOOLS = namedtuple('tools', 'collapser aligner masker reporter overlapper '
                            'builder pruner')
RESULT = namedtuple('result', 'groups rejected taxa outdir')
REJECTION = namedtuple('rejection', 'stage bucket reason')

BACKUP = 'unedited_sequences'
ALIGNMENTS = 'backup_alignments'
ALICUT_FILES = 'alicut_files'
INFOALIGN_FILES = 'infoalign_files'
PRETREE = 'backup_pre-phylotreepruner'
MANIFEST = 'rejections.tsv'
FEW_TAXA_1, SHORT_ALIGNMENT, FEW_TAXA_2 = ('few_taxa_1', 'short_alignment',
                                           'few_taxa_2')
PARALOG_PRUNING = 'paralog_pruning'
TREE_DELIMITER = '@'


def toolkit(mafft='mafft', perl='perl', aliscore=mask.ALISCORE,
            alicut=mask.ALICUT, infoalign='infoalign', java='java',
            fasttree='FastTreeMP', uniqhaplo='', compare_path='/usr/local/bin',
            class_path='/usr/local/bin/PhyloTreePruner'):
    """
    Bind the executables of external programs into a TOOLS tuple.

    :param uniqhaplo: str, path to uniqHaplo.pl, if not set, redundant
        sequences will be collapsed by ``filters.collapse()``.
    :param compare_path: str, directory holding AlignmentCompare.class.
    :param class_path: str, directory holding PhyloTreePruner.class.
    :return: namedtuple, callables in the order of collapser, aligner,
        masker, reporter, overlapper, builder, and pruner.
    """

    collapser = partial(msa.collapse, uniqhaplo) if uniqhaplo else None
    return TOOLS(collapser=collapser,
                 aligner=partial(msa.mafft, mafft),
                 masker=partial(mask.mask, perl=perl, aliscore=aliscore,
                                alicut=alicut),
                 reporter=partial(divergence.report, exe=infoalign),
                 overlapper=partial(overlap.overlap, java=java,
                                    classpath=compare_path),
                 builder=partial(mlt.fasttree, fasttree),
                 pruner=partial(ptp.ptp, java=java, classpath=class_path))


def _load(wd):
    groups = OrderedDict()
    for fasta in sorted(glob.glob(os.path.join(wd, '*.fa'))):
        try:
            groups[basename(fasta)] = read(fasta)
        except MalformedHeader as err:
            error('Loading ortholog group {} failed:\n\t{}'.format(fasta, err))
            raise
    return groups


def _save(groups, directory, delimiter='|'):
    if not os.path.isdir(directory):
        os.makedirs(directory)
    for name, records in groups.items():
        write(records, os.path.join(directory, '{}.fa'.format(name)),
              delimiter=delimiter)
    return directory


def _parallel(func, items, threads=1):
    """
    Call func on every item, concurrently if threads is larger than 1, and
    return the results in the order of items.
    """

    if threads > 1 and len(items) > 1:
        with ThreadPoolExecutor(max_workers=threads) as pool:
            return list(pool.map(func, items))
    return [func(item) for item in items]


def _process(groups, func, threads=1):
    """
    Apply func(name, records) to every non-empty group.

    Empty groups are carried forward untouched. A group emptied by func is
    logged and carried forward as an empty group, the next checkpoint will
    reject it.
    """

    def guard(name):
        try:
            return func(name, groups[name])
        except EmptyGroupAfterFilter as err:
            warn('Group {}: {}, carried forward as an empty group.'.format(
                name, err))
            return []

    names = [name for name, records in groups.items() if records]
    results = dict(zip(names, _parallel(guard, names, threads)))
    return OrderedDict((name, results.get(name, records))
                       for name, records in groups.items())


def _apply(tool, stage, root, name, records, **kwargs):
    """
    Run a FASTA in, FASTA out tool over a group under opaque sequence names.
    """

    with scratch(root) as wd:
        seq = os.path.join(wd, '{}.fa'.format(name))
        mapping = dump(records, seq)
        outfile = os.path.join(wd, '{}.out.fa'.format(name))
        tool(seq, outfile, **kwargs)
        records = load(outfile, mapping)
    if not records:
        raise EmptyGroupAfterFilter(stage)
    return records


def _per_taxon(tool, stage, root, name, records):
    """
    Run a collapser over the sequences of each taxon separately, sequences
    of different taxa are never collapsed into each other.
    """

    taxa = OrderedDict()
    for record in records:
        taxa.setdefault(record.header.taxon, []).append(record)

    collapsed = []
    for taxon, subset in taxa.items():
        if len(subset) > 1:
            subset = _apply(tool, stage, root, '{}_{}'.format(name, taxon),
                            subset)
        collapsed.extend(subset)
    return collapsed


def _divergence(tool, root, similarity, diagnostics, name, records):
    """
    Score every sequence of a group with the reporter and keep the ones
    similar enough to the consensus.
    """

    with scratch(root) as wd:
        seq = os.path.join(wd, '{}.fa'.format(name))
        mapping = dump(records, seq)
        report = tool(seq, os.path.join(wd, '{}.info'.format(name)))
        similarities = divergence.parse(report)

    missing = [k for k in mapping if k not in similarities]
    if missing:
        msg = 'infoalign report for group {} misses {} of {} sequences.'.format(
            name, len(missing), len(mapping))
        error(msg)
        raise ToolInvocationFailure(msg)
    scores = [similarities[k] for k in mapping]

    write(records, os.path.join(diagnostics, '{}.fa'.format(name)))
    with open(os.path.join(diagnostics, '{}.info'.format(name)), 'w') as o:
        o.write('#Name\t%Change\tSimilarity\n')
        o.writelines('{}\t{:.2f}\t{:.2f}\n'.format(format_header(r.header),
                                                  100.0 - s, s)
                     for r, s in zip(records, scores))

    kept = []
    try:
        kept = filters.select(records, scores, similarity=similarity)
        return kept
    finally:
        with open(os.path.join(diagnostics, '{}.list'.format(name)), 'w') as o:
            o.writelines('{}\n'.format(format_header(r.header)) for r in kept)


def _manifest(rejected, outdir):
    with open(os.path.join(outdir, MANIFEST), 'w') as o:
        o.write('#Group\tStage\tBucket\tReason\n')
        o.writelines('{}\t{}\t{}\t{}\n'.format(name, *r)
                     for name, r in rejected.items())


def _reject(stage, bucket, rejection, groups, outdir, rejected):
    """
    Move rejected groups into their bucket and record them in the manifest.
    """

    directory = os.path.join(outdir, 'rejected_{}'.format(bucket))
    if not os.path.isdir(directory):
        os.makedirs(directory)
    for name, (_, reason) in rejection.items():
        write(groups[name], os.path.join(directory, '{}.fa'.format(name)))
        rejected[name] = REJECTION(stage, bucket, reason)
        info('\t{}: {}'.format(name, reason))
    info('{} group(s) moved to {}.'.format(len(rejection), directory))
    _manifest(rejected, outdir)


def clean(wd, outdir='', tools=None, min_sequence_length=50,
          min_alignment_length=50, min_taxa=50, similarity=75.0, support=4,
          bootstrap=0.95, tiebreak='u', threads=1, verbose=False):
    """
    Clean HaMStR ortholog groups into alignments ready for phylogenomics.

    :param wd: str, directory of ortholog group FASTA files (*.fa).
    :param outdir: str, output directory, default: [wd]/orthotrim.
    :param tools: namedtuple, a TOOLS tuple, default: ``toolkit()``.
    :param min_sequence_length: int, sequences shorter than this length (in
        amino acids) are deleted.
    :param min_alignment_length: int, groups whose trimmed alignment is
        shorter than this length (in amino acids) are rejected.
    :param min_taxa: int, minimum number of taxa to keep a group, also used
        by PhyloTreePruner.
    :param similarity: float, minimum similarity (percent) to the consensus
        to keep a sequence in the divergence filter (inclusive).
    :param support: int, alignment columns with this many residues or fewer
        are removed.
    :param bootstrap: float, bootstrap cutoff used by PhyloTreePruner.
    :param tiebreak: str, u (unique, keep the longest sequence per taxon) or
        r (redundant, keep all and let a downstream tool pick).
    :param threads: int, number of groups processed concurrently within a
        stage.
    :param verbose: bool, invoke verbose or silent process mode,
        default: False, silent mode.
    :return: namedtuple, in the order of groups (the final working set),
        rejected (group name and REJECTION pairs), taxa (sorted taxon codes
        after the first taxa filter), and outdir.
    """

    logger.setLevel(logging.INFO if verbose else logging.ERROR)

    if not os.path.isdir(wd):
        error('Working directory {} is not a directory or does not '
              'exist.'.format(wd))
        raise OrthoTrimError('Invalid working directory {}.'.format(wd))
    if tiebreak not in ptp.TIEBREAKS:
        error('Invalid tiebreak {}, tiebreak should be either u (unique) or r '
              '(redundant).'.format(tiebreak))
        raise OrthoTrimError('Invalid tiebreak {}.'.format(tiebreak))

    wd = os.path.abspath(wd)
    outdir = os.path.abspath(outdir or os.path.join(wd, 'orthotrim'))
    if not os.path.isdir(outdir):
        os.makedirs(outdir)
    tools = tools or toolkit()
    rejected = OrderedDict()

    groups = _load(wd)
    if not groups:
        error('No ortholog group (*.fa) was found in {}.'.format(wd))
        raise OrthoTrimError('No input files in {}.'.format(wd))
    info('Loaded {} ortholog groups from {}.'.format(len(groups), wd))

    info('Making a backup of all sequences before beginning...')
    backup = os.path.join(outdir, BACKUP)
    if not os.path.isdir(backup):
        os.makedirs(backup)
    for fasta in glob.glob(os.path.join(wd, '*.fa')):
        shutil.copy(fasta, backup)

    info('Deleting sequences shorter than {} AAs...'.format(
        min_sequence_length))
    groups = _process(groups, lambda name, records: filters.length_filter(
        records, minimum=min_sequence_length))

    info('Removing groups with fewer than {} taxa...'.format(min_taxa))
    kept, rejection = filters.taxa_filter(groups, min_taxa, FEW_TAXA_1)
    _reject('minimum taxa (1)', FEW_TAXA_1, rejection, groups, outdir,
            rejected)
    groups = kept

    taxa = filters.taxon_list(groups)
    info('List of OTUs ({}):\n\t{}'.format(len(taxa), '\n\t'.join(taxa)))
    if not groups:
        warn('No ortholog group survived the first taxa filter.')

    info('Removing redundant sequences...')
    if tools.collapser:
        groups = _process(groups, partial(_per_taxon, tools.collapser,
                                          'redundant sequence removal',
                                          outdir), threads)
    else:
        groups = _process(groups, lambda name, records:
                          filters.collapse(records))

    info("Trimming 5' ends...")
    groups = _process(groups, lambda name, records: filters.trim_five(records))
    info("Trimming 3' ends...")
    groups = _process(groups, lambda name, records: filters.trim_three(records))

    info('Aligning sequences using MAFFT...')
    groups = _process(groups, partial(_apply, tools.aligner, 'alignment',
                                      outdir), threads)
    _save(groups, os.path.join(outdir, ALIGNMENTS))

    info('Removing line breaks in sequences...')
    groups = _process(groups, lambda name, records: filters.unwrap(records))

    info('Trimming alignments using Aliscore and ALICUT...')
    diagnostics = os.path.join(outdir, ALICUT_FILES)
    if not os.path.isdir(diagnostics):
        os.makedirs(diagnostics)
    groups = _process(groups, partial(_apply, tools.masker, 'masking', outdir,
                                      diagnostics=diagnostics), threads)

    info('Removing line breaks in sequences...')
    groups = _process(groups, lambda name, records: filters.unwrap(records))

    info('Removing highly divergent sequences using infoalign...')
    diagnostics = os.path.join(outdir, INFOALIGN_FILES)
    if not os.path.isdir(diagnostics):
        os.makedirs(diagnostics)
    groups = _process(groups, partial(_divergence, tools.reporter, outdir,
                                      similarity, diagnostics), threads)

    info('Deleting misaligned sequence ends...')
    groups = _process(groups, lambda name, records:
                      filters.mask_fragments(records))

    info('Removing columns with {} or fewer residues...'.format(support))
    groups = _process(groups, lambda name, records: filters.sparse_columns(
        records, support=support))

    info('Removing alignments shorter than {} AAs...'.format(
        min_alignment_length))
    kept, rejection = filters.alignment_filter(groups, min_alignment_length,
                                               SHORT_ALIGNMENT)
    _reject('minimum alignment length', SHORT_ALIGNMENT, rejection, groups,
            outdir, rejected)
    groups = kept

    info('Removing sequences that do not overlap with all other sequences by '
         'at least 20 AAs...')
    groups = _process(groups, partial(_apply, tools.overlapper,
                                      'overlap filter', outdir), threads)

    info('Removing groups with fewer than {} taxa...'.format(min_taxa))
    kept, rejection = filters.taxa_filter(groups, min_taxa, FEW_TAXA_2)
    _reject('minimum taxa (2)', FEW_TAXA_2, rejection, groups, outdir,
            rejected)
    groups = kept

    info('Making a backup of remaining groups and removing group IDs from '
         'headers...')
    _save(groups, os.path.join(outdir, PRETREE))
    groups = OrderedDict((name, filters.simplify(records))
                         for name, records in groups.items())
    _save(groups, outdir, delimiter=TREE_DELIMITER)

    names = [name for name, records in groups.items() if records]
    if len(names) != len(groups):
        warn('{} empty group(s) skipped for tree inference.'.format(
            len(groups) - len(names)))

    info('Making a tree for each group using FastTree...')
    _parallel(lambda name: tools.builder(
        os.path.join(outdir, '{}.fa'.format(name)),
        os.path.join(outdir, '{}.tre'.format(name))), names, threads)

    info('Running PhyloTreePruner to remove paralogous sequences...')

    def prune(name):
        try:
            return tools.pruner(
                os.path.join(outdir, '{}.tre'.format(name)),
                os.path.join(outdir, '{}.fa'.format(name)),
                os.path.join(outdir, '{}_pruned.fa'.format(name)),
                minimum=min_taxa, bootstrap=bootstrap, tiebreak=tiebreak)
        except EmptyGroupAfterFilter:
            return ''

    pruned = _parallel(prune, names, threads)
    rejection = OrderedDict(
        (name, (PARALOG_PRUNING, 'fewer than {} taxa left after paralog '
                                 'pruning'.format(min_taxa)))
        for name, out in zip(names, pruned) if not out)
    if rejection:
        _reject('paralog pruning', PARALOG_PRUNING, rejection, groups, outdir,
                rejected)
        groups = OrderedDict((name, records) for name, records in
                             groups.items() if name not in rejection)

    _manifest(rejected, outdir)
    info('Cleaning finished, {} group(s) kept and {} group(s) rejected, '
         'results were saved to {}.'.format(len(names) - len(rejection),
                                            len(rejected), outdir))
    return RESULT(groups, rejected, taxa, outdir)


def main():
    des = 'Clean HaMStR ortholog groups into alignments for phylogenomics.'
    epilog = """
Run on a directory of FASTA files (extension must be .fa), each file is one
putatively orthologous group (according to HaMStR). Headers must be in the
format of >orthology_group_ID|species_name_abbreviation|annotation, e.g.
>0001|LGIG|Contig1234, and may only contain letters, digits and underscores
besides the pipe delimiters.

MAFFT, Aliscore, ALICUT, infoalign (EMBOSS), FastTree, the AlignmentCompare
and PhyloTreePruner Java classes (and optionally uniqHaplo) must be installed,
their locations can be changed with the corresponding options.

Final alignments ([group].fa), trees ([group].tre) and pruned alignments
([group]_pruned.fa) are saved in the output directory together with backups,
diagnostic files, rejected groups (rejected_[bucket]) and rejections.tsv.
"""
    formatter = argparse.RawDescriptionHelpFormatter
    parse = argparse.ArgumentParser(description=des, prog='orthotrim',
                                    usage='%(prog)s WD [OPTIONS]',
                                    formatter_class=formatter, epilog=epilog)

    parse.add_argument('WD',
                       help='Directory of the ortholog group FASTA files.')
    parse.add_argument('-o', '--outdir', default='',
                       help='Output directory, default: WD/orthotrim.')
    parse.add_argument('-l', '--min-sequence-length', type=int, default=50,
                       help='Delete sequences shorter than this length.')
    parse.add_argument('-a', '--min-alignment-length', type=int, default=50,
                       help='Minimum length of a trimmed alignment in AAs.')
    parse.add_argument('-t', '--min-taxa', type=int, default=50,
                       help='Minimum number of OTUs to keep a group.')
    parse.add_argument('-s', '--similarity', type=float, default=75.0,
                       help='Minimum similarity (percent, 100 - %%Change of '
                            'infoalign) to the consensus to keep a '
                            'sequence, default: 75, i.e. at most 25%% of '
                            'positions may differ. Lower it (e.g. -s 25) to '
                            'keep sequences differing at up to 75%% of '
                            'positions.')
    parse.add_argument('-c', '--support', type=int, default=4,
                       help='Remove columns with this many residues or '
                            'fewer.')
    parse.add_argument('-b', '--bootstrap', type=float, default=0.95,
                       help='Bootstrap cutoff used by PhyloTreePruner.')
    parse.add_argument('-r', '--tiebreak', choices=['u', 'r'], default='u',
                       help='u (unique) keeps the longest sequence per OTU, '
                            'r (redundant) keeps all of them.')
    parse.add_argument('-j', '--threads', type=int, default=1,
                       help='Number of groups processed concurrently.')
    parse.add_argument('--mafft', default='mafft',
                       help='Path to the executable of MAFFT.')
    parse.add_argument('--perl', default='perl',
                       help='Path to the executable of perl.')
    parse.add_argument('--aliscore', default=mask.ALISCORE,
                       help='Path to Aliscore.02.2.pl.')
    parse.add_argument('--alicut', default=mask.ALICUT,
                       help='Path to ALICUT_V2.3.pl.')
    parse.add_argument('--infoalign', default='infoalign',
                       help='Path to the executable of infoalign.')
    parse.add_argument('--java', default='java',
                       help='Path to the executable of java.')
    parse.add_argument('--fasttree', default='FastTreeMP',
                       help='Path to the executable of FastTree.')
    parse.add_argument('--uniqhaplo', default='',
                       help='Path to uniqHaplo.pl, redundant sequences are '
                            'collapsed internally if not set.')
    parse.add_argument('--compare-path', default='/usr/local/bin',
                       help='Directory holding AlignmentCompare.class.')
    parse.add_argument('--class-path', default='/usr/local/bin/PhyloTreePruner',
                       help='Directory holding PhyloTreePruner.class.')
    parse.add_argument('-v', '--verbose', action='store_true',
                       help='Invoke verbose or silent (default) process mode.')

    args = parse.parse_args()
    tools = toolkit(mafft=args.mafft, perl=args.perl, aliscore=args.aliscore,
                    alicut=args.alicut, infoalign=args.infoalign,
                    java=args.java, fasttree=args.fasttree,
                    uniqhaplo=args.uniqhaplo, compare_path=args.compare_path,
                    class_path=args.class_path)
    try:
        clean(args.WD, outdir=args.outdir, tools=tools,
              min_sequence_length=args.min_sequence_length,
              min_alignment_length=args.min_alignment_length,
              min_taxa=args.min_taxa, similarity=args.similarity,
              support=args.support, bootstrap=args.bootstrap,
              tiebreak=args.tiebreak, threads=args.threads,
              verbose=args.verbose)
    except OrthoTrimError as err:
        error('Cleaning aborted: {}'.format(err))
        sys.exit(1)


if __name__ == '__main__':
    main()
