#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Tests for OrthoTrim, tests that need an external program are configured in
settings.py.
"""
