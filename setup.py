#!/usr/bin/env python3
"""
Setup script for the File Scope package.
"""

from setuptools import setup, find_packages
import os

# Get the long description from the README file
here = os.path.abspath(os.path.dirname(__file__))
with open(os.path.join(here, 'README.md'), encoding='utf-8') as f:
    long_description = f.read()

# Get the version from VERSION file or define it manually
try:
    with open(os.path.join(here, 'VERSION'), encoding='utf-8') as f:
        version = f.read().strip()
except FileNotFoundError:
    version = '0.1.0'  # Initial version

# Get the requirements
with open(os.path.join(here, 'requirements.txt'), encoding='utf-8') as f:
    requirements = [line.strip() for line in f if line.strip() and not line.startswith('#')]

setup(
    name='file-scope',
    version=version,
    description='Dependency-aware file trees with importance ranking for source projects',
    long_description=long_description,
    long_description_content_type='text/markdown',
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'Topic :: Software Development :: Libraries :: Python Modules',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
    ],
    keywords='code analysis, dependency graph, file importance, mcp',
    packages=find_packages(exclude=['tests', 'tests.*', 'docs', 'examples']),
    python_requires='>=3.10, <4',
    install_requires=requirements,
    extras_require={
        'test': ['pytest', 'pytest-asyncio', 'httpx'],
    },
    entry_points={
        'console_scripts': [
            'file-scope=scope_core.cli:main',
        ],
    },
)
