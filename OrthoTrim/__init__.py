#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
OrthoTrim - cleaning HaMStR ortholog groups into alignments and gene trees
ready for phylogenomic analysis.
"""

__version__ = '1.0'
