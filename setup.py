import os
import re

from setuptools import find_packages, setup


def get_version():
    with open(os.path.join('src', 'realign_targets', '__init__.py'), 'r') as fh:
        return re.search(r"__version__ = '([^']+)'", fh.read()).group(1)


VERSION = get_version()


def parse_md_readme():
    try:
        with open('README.md', 'r') as fh:
            return fh.read()
    except OSError:
        return ''


# HSTLIB is a dependency for pysam.
# The cram file libraries fail for some OS versions and cram files are not used here so we disable these options
os.environ['HTSLIB_CONFIGURE_OPTIONS'] = '--disable-lzma --disable-bz2 --disable-libcurl'


TEST_REQS = [
    'pytest',
    'pytest-cov',
]


INSTALL_REQS = [
    'mavis_config>=1.1.0',
    'pandas>=1.1',
    'pysam>=0.15.2',
    'snakemake>=6.1.1',
]

DEPLOY_REQS = ['twine', 'wheel']


setup(
    name='realign_targets',
    version='{}'.format(VERSION),
    packages=find_packages(where='src', exclude=['tests']),
    package_dir={'': 'src'},
    package_data={'realign_targets': ['schemas/*.json']},
    description='Finds the intervals of an alignment which should be targeted for local realignment',
    long_description=parse_md_readme(),
    long_description_content_type='text/markdown',
    install_requires=INSTALL_REQS,
    extras_require={
        'test': TEST_REQS,
        'dev': ['black', 'flake8'] + TEST_REQS + DEPLOY_REQS,
        'deploy': DEPLOY_REQS,
    },
    python_requires='>=3.8',
    test_suite='tests',
    entry_points={
        'console_scripts': [
            'realign_targets = realign_targets.main:main',
        ]
    },
)
