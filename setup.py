# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
"""
A setuptools based setup module.
See:
https://packaging.python.org/guides/distributing-packages-using-setuptools/
https://github.com/pypa/sampleproject
"""

# Always prefer setuptools over distutils
from setuptools import setup, find_packages
import os

here = os.path.abspath(os.path.dirname(__file__))

# read the version without importing the package (its dependencies may not be installed yet)
version_ns = dict()
with open(os.path.join(here, 'src', 'FastDcEngine', '__version__.py'), encoding='utf-8') as f:
    exec(f.read(), version_ns)
__FastDcEngine_VERSION__ = version_ns['__FastDcEngine_VERSION__']

long_description = """# FastDcEngine

DC power flow and fast contingency analysis.

The DC power flow equations are built from composable equation terms and solved
with a single sparse factorization. Contingencies and remedial actions
(branch outages, switch operations, tap changes) are evaluated with low rank
(Woodbury) updates of the base solution, including the contingencies that
split the network in several islands.

## Installation

pip install FastDcEngine
"""

description = 'DC power flow and Woodbury contingency analysis engine'

pkgs_to_exclude = ['docs', 'research', 'tests', 'tutorials']

packages = find_packages(where='src', exclude=pkgs_to_exclude)

# ... so we have to do the filtering ourselves
packages2 = list()
for package in packages:
    elms = package.split('.')
    excluded = False
    for exclude in pkgs_to_exclude:
        if exclude in elms:
            excluded = True

    if not excluded:
        packages2.append(package)

dependencies = ['setuptools>=41.0.1',
                'wheel>=0.37.2',
                "numpy>=1.22",
                "scipy>=1.0.0",
                "networkx>=2.1",
                "pandas>=2.2.3",
                "numba>=0.60",  # to compile routines natively
                ]

extras_require = {
    'test': ["pytest>=7.2"]
}

setup(
    name='FastDcEngine',  # Required
    version=__FastDcEngine_VERSION__,  # Required
    license='MPL2',
    description=description,  # Optional
    long_description=long_description,  # Optional
    long_description_content_type='text/markdown',  # Optional (see note above)
    url='https://github.com/SanPen/GridCal',  # Optional
    author='Santiago Peñate Vera et. Al.',  # Optional
    author_email='santiago@gridcal.org',  # Optional
    classifiers=[
        'License :: OSI Approved :: Mozilla Public License 2.0 (MPL 2.0)',
        'Programming Language :: Python :: 3.8',
    ],
    keywords='power systems dc power flow contingency analysis',  # Optional
    packages=packages2,  # Required
    package_dir={'': 'src'},
    include_package_data=True,
    python_requires='>=3.8',
    install_requires=dependencies,
    extras_require=extras_require,
)
