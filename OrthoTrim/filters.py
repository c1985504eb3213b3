#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Sequence and alignment filters applied between the external programs of a
cleaning run.

All functions in this module are pure: they take lists of SEQUENCE records
(or an ordered mapping of group names to such lists) and return new ones,
nothing is written to the file system. Filters that may remove every
sequence of a group raise ``EmptyGroupAfterFilter`` instead of silently
returning an empty list, it is up to the caller to decide what happens to
that group.

Residues are upper case letters other than X, X is the ambiguity marker and
anything else (mainly -) is treated as a gap.
"""

import re
import sys
import logging

from collections import Counter, OrderedDict

import numpy as np

from OrthoTrim.utilities import EmptyGroupAfterFilter

LEVEL = logging.INFO
LOGFILE, LOGFILEMODE = '', 'w'

HANDLERS = [logging.StreamHandler(sys.stdout)]
if LOGFILE:
    HANDLERS.append(logging.FileHandler(filename=LOGFILE, mode=LOGFILEMODE))

logging.basicConfig(format='%(asctime)s %(levelname)-8s %(name)s %(message)s',
                    datefmt='%Y-%m-%d %H:%M:%S', handlers=HANDLERS, level=LEVEL)

logger = logging.getLogger('[OrthoTrim]')
warn, info, error = logger.warning, logger.info, logger.error

GAP, AMBIGUOUS = '-', 'X'
RESIDUES = 'ABCDEFGHIJKLMNOPQRSTUVWYZ'


def residues(seq):
    """Number of residues (any character other than a gap) in a sequence."""

    return len(seq) - seq.count(GAP)


def length_filter(records, minimum=50):
    """
    Delete sequences shorter than minimum residues.

    :param records: list, a list of SEQUENCE records.
    :param minimum: int, minimum number of residues a sequence must have.
    :return: list, records with at least minimum residues.
    """

    kept = [r for r in records if residues(r.seq) >= minimum]
    if records and not kept:
        raise EmptyGroupAfterFilter('minimum sequence length filter')
    return kept


def occupancy(records):
    """
    Count the number of taxa represented by at least one sequence.
    """

    counts = Counter(r.header.taxon for r in records)
    return len([taxon for taxon, n in counts.items() if n > 0])


def taxa_filter(groups, minimum, bucket):
    """
    Split groups by taxon occupancy.

    :param groups: OrderedDict, group name and list of records pairs.
    :param minimum: int, minimum number of taxa a group needs to be kept.
    :param bucket: str, name of the rejection bucket.
    :return: tuple, an OrderedDict of kept groups and an OrderedDict of
        rejected group names with (bucket, reason) pairs.
    """

    kept, rejected = OrderedDict(), OrderedDict()
    for name, records in groups.items():
        n = occupancy(records)
        if n < minimum:
            rejected[name] = (bucket, '{} taxa, fewer than {}'.format(
                n, minimum))
        else:
            kept[name] = records
    return kept, rejected


def taxon_list(groups):
    """Sorted list of distinct taxon codes found in all groups."""

    return sorted(set(r.header.taxon for records in groups.values()
                      for r in records))


def collapse(records):
    """
    Collapse identical sequences from the same taxon into the first one.
    """

    seen, kept = set(), []
    for record in records:
        key = (record.header.taxon, record.seq)
        if key not in seen:
            seen.add(key)
            kept.append(record)
    return kept


def trim_five(records, window=20):
    """
    If one of the first window characters of a sequence is an X, that X and
    all characters before it are removed.
    """

    pattern = re.compile(r'^.{{0,{}}}{}'.format(window - 1, AMBIGUOUS))
    return [r._replace(seq=pattern.sub('', r.seq, count=1)) for r in records]


def trim_three(records, window=20):
    """
    If one of the last window characters of a sequence is an X, that X and
    all characters after it are removed.
    """

    pattern = re.compile(r'{}.{{0,{}}}$'.format(AMBIGUOUS, window - 1))
    return [r._replace(seq=pattern.sub('', r.seq, count=1)) for r in records]


def unwrap(records):
    """Remove white spaces and line breaks left inside sequences."""

    return [r._replace(seq=''.join(r.seq.split())) for r in records]


def fragments(seq, fragment=20, flank=10):
    """
    Replace stretches of at most fragment residues surrounded by at least
    flank gaps on both sides with gaps.

    :param seq: str, an aligned sequence.
    :param fragment: int, maximum length of a stretch to be replaced.
    :param flank: int, minimum number of gaps on either side.
    :return: str, the cleaned sequence, it has the same length as seq.
    """

    pattern = re.compile(r'(?<={gap}{{{flank}}})[{aa}]{{1,{fragment}}}'
                         r'(?={gap}{{{flank}}})'.format(
                             gap=GAP, flank=flank, aa=RESIDUES,
                             fragment=fragment))
    return pattern.sub(lambda m: GAP * len(m.group()), seq)


def mask_fragments(records, fragment=20, flank=10):
    """Apply ``fragments()`` to every sequence of a group."""

    return [r._replace(seq=fragments(r.seq, fragment=fragment, flank=flank))
            for r in records]


def sparse_columns(records, support=4):
    """
    Remove alignment columns with support or fewer residues.

    :param records: list, a list of aligned SEQUENCE records.
    :param support: int, columns with this many residues or fewer are
        removed regardless of the number of sequences in the alignment.
    :return: list, records with sparse columns removed.
    """

    if not records:
        return []
    lengths = set(len(r.seq) for r in records)
    if len(lengths) != 1:
        raise ValueError('Alignment contains non equal length sequences.')

    matrix = np.array([list(r.seq) for r in records], dtype='U1')
    matrix = matrix.reshape(len(records), lengths.pop())
    counts = np.isin(matrix, list(RESIDUES)).sum(axis=0)
    keep = counts > support
    return [r._replace(seq=''.join(row[keep]))
            for r, row in zip(records, matrix)]


def mean_length(records):
    """
    Mean length of aligned sequences, 0.0 for an empty group.

    The length of an aligned row includes its gaps, so this is the width of
    the trimmed alignment rather than a mean residue count.
    """

    if not records:
        return 0.0
    return sum(len(r.seq) for r in records) / float(len(records))


def alignment_filter(groups, minimum, bucket):
    """
    Split groups by mean aligned sequence length, works the same way as
    ``taxa_filter()``.
    """

    kept, rejected = OrderedDict(), OrderedDict()
    for name, records in groups.items():
        length = mean_length(records)
        if length < minimum:
            rejected[name] = (bucket, 'mean length {:.1f}, shorter than '
                                      '{}'.format(length, minimum))
        else:
            kept[name] = records
    return kept, rejected


def select(records, scores, similarity=75.0):
    """
    Keep sequences whose similarity to the consensus is at least similarity.

    :param records: list, a list of aligned SEQUENCE records.
    :param scores: list, similarity (percent) of each record, in the same
        order as records.
    :param similarity: float, the inclusive cutoff.
    :return: list, retained records.
    """

    if len(records) != len(scores):
        raise ValueError('Number of scores does not match number of '
                         'sequences.')
    kept = [r for r, s in zip(records, scores) if s >= similarity]
    if records and not kept:
        raise EmptyGroupAfterFilter('divergence filter')
    return kept


def simplify(records):
    """Strip the group field from headers."""

    return [r._replace(header=r.header._replace(group=None)) for r in records]


if __name__ == '__main__':
    pass
