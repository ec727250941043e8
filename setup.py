#!/usr/bin/env python

from setuptools import setup, find_packages
from os import path

this_directory = path.abspath(path.dirname(__file__))
with open(path.join(this_directory, 'README.md'), encoding='utf-8') as f:
    long_description = f.read()

requirements = [
    'cryptography',
]

test_requirements = [
    'pytest>=3',
]

setup(
    name='cohortkit',
    version='1.0.0',
    author="cohortkit contributors",
    python_requires='>=3.8',
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Natural Language :: English',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
    ],
    description="Sticky, mutually exclusive experiment cohorts with live overrides",
    long_description=long_description,
    long_description_content_type='text/markdown',
    install_requires=requirements,
    extras_require={'test': test_requirements},
    license="MIT",
    include_package_data=True,
    packages=find_packages(include=['cohortkit', 'cohortkit.*']),
    package_data={"cohortkit": ["py.typed"]},
    keywords='experiments ab-testing cohorts',
)
