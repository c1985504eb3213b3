#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Before run any test that uses an external program, the path of its
executable needs to be set here, otherwise those tests will be skipped.
Tests of the cleaning pipeline itself use fake tools (see fakes.py) and
always run.

If you want the test script do cleanup after testing, set True for CLEANUP,
then all the files generated during testing will be removed upon all tests
finished.
"""

# Path to the executables of the programs wrapped by OrthoTrim
MAFFT = None
FASTTREE = None
INFOALIGN = None
UNIQHAPLO = None

# Aliscore and ALICUT are run by perl
PERL = 'perl'
ALISCORE = None
ALICUT = None

# AlignmentCompare and PhyloTreePruner are run by java
JAVA = 'java'
COMPARE_PATH = None
PHYLOTREEPRUNER_PATH = None

CLEANUP = True

# The following executables are used by myself, I have all these executables
# installed into /usr/local/bin and the directory is a part of $PATH.
#
# MAFFT = 'mafft'  # MAFFT v7
# FASTTREE = 'FastTreeMP'
# INFOALIGN = 'infoalign'  # EMBOSS 6.6.0
# ALISCORE = '/usr/local/bin/Aliscore.02.2.pl'
# ALICUT = '/usr/local/bin/ALICUT_V2.3.pl'
# COMPARE_PATH = '/usr/local/bin'
# PHYLOTREEPRUNER_PATH = '/usr/local/bin/PhyloTreePruner'
