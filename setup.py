#!/usr/bin/env python
# -*- coding: utf-8 -*-

import os
from setuptools import setup, find_packages

VERSION = '1.0'

wd = os.path.abspath(os.path.dirname(__file__))


def readme():
    with open(os.path.join(wd, 'README.rst')) as f:
        return f.read()


setup(name='OrthoTrim',
      version=VERSION,
      description="""OrthoTrim - A pipeline for filtering and trimming HaMStR
      ortholog groups into alignments for phylogenomic analysis.""",
      long_description=readme(),
      license='MIT',
      packages=find_packages(exclude=['tests']),
      install_requires=['biopython>=1.71', 'numpy'],
      extras_require={'test': ['pytest']},
      entry_points={
          'console_scripts': ['orthotrim=OrthoTrim.pipeline:main',
                              'orthotrim-msa=OrthoTrim.msa:main',
                              'orthotrim-mlt=OrthoTrim.mlt:main']
          },
      include_package_data=True,
      classifiers=[
          'Development Status :: 3 - Alpha',
          'Environment :: Console',
          'Intended Audience :: Science/Research',
          'License :: OSI Approved :: MIT License',
          'Natural Language :: English',
          'Programming Language :: Python :: 3',
          'Topic :: Scientific/Engineering :: Bio-Informatics',
          ],
      keywords='phylogenomics ortholog alignment trimming paralog pruning'
      )


if __name__ == '__main__':
    pass
