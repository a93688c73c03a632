#!/usr/bin/env python
# -*- coding: utf-8 -*-

from setuptools import setup, find_packages

import cloudbuild_gchat

setup(name='cloudbuild_gchat',
      version=cloudbuild_gchat.__version__,
      description='Forward Cloud Build status notifications to Google Chat',
      url='https://github.com/seankhliao/cloudbuild-gchat',
      license='MIT',
      packages=find_packages(exclude=['tests', 'tests.*']),
      include_package_data=True,
      python_requires='>=3.9',
      entry_points={
        'console_scripts': [
            'cloudbuild-gchat = cloudbuild_gchat.cli:main',
        ],
      },
      install_requires=['setuptools',
                        'fastapi',
                        'uvicorn',
                        'httpx',
                        'anyio',
                        'pydantic>=2',
                        'pydantic-settings',
                        'sentry-sdk>=2.15',
      ],
      extras_require={
          'test': [
              'pytest',
              'respx',
          ],
      },
      )
