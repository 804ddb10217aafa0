#!/usr/bin/env python

# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later

# -*- encoding: utf-8 -*-

from setuptools import find_packages
from setuptools import setup

setup(
    name="keycharmap",
    version="0.0.0",
    license="GPL-3.0-or-later",
    description="Key character maps: key codes and modifiers to characters, and back",
    long_description="TODO",
    author="Rose Davidson",
    author_email="rose@metaclassical.com",
    packages=find_packages("src"),
    package_dir={"": "src"},
    include_package_data=True,
    zip_safe=False,
    classifiers=[
        # complete classifier list: http://pypi.python.org/pypi?%3Aaction=list_classifiers
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: GNU General Public License v3 or later (GPLv3+)",
        "Operating System :: OS Independent",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3 :: Only",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: Implementation :: CPython",
        "Topic :: Software Development :: Libraries",
        "Topic :: Text Processing",
    ],
    keywords=[
        "keyboard",
        "keymap",
    ],
    python_requires=">=3.10",
    install_requires=[
        "cattrs>=22.1.0",
        "msgspec>=0.18.0",
        "trio>=0.22.0",
    ],
    extras_require={
        "test": ["pytest>=7.0", "pytest-trio>=0.8.0"],
    },
    entry_points={
        "console_scripts": [
            "keycharmap-check = keycharmap.scripts:check_main",
            "keycharmap-type = keycharmap.scripts:type_main",
            "keycharmap-lookup = keycharmap.scripts:lookup_main",
        ],
    },
    setup_requires=[
        "setuptools>=30.3.0",
        "wheel",
    ],
)
