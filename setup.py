# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import setuptools

import lakesender

with open('README.md', 'r') as f:
  long_description = f.read()

setuptools.setup(
  name='lake-sender',
  version=lakesender.__version__,
  author='Google',
  description='Create-before-write senders for hierarchical-namespace cloud storage.',
  long_description=long_description,
  long_description_content_type='text/markdown',
  packages=setuptools.find_packages(exclude=['tests', 'tests.*']),
  install_requires=[
      'PyYAML',
  ],
  extras_require={
      # Cloud SDKs are optional.  Each one enables its URL schemes.
      'azure': ['azure-core', 'azure-storage-file-datalake'],
      'gcs': ['google-cloud-storage'],
      's3': ['boto3'],
      'test': ['pytest', 'pytest-mock'],
  },
  classifiers=[
      'Programming Language :: Python :: 3',
      'License :: OSI Approved :: Apache Software License',
      'Operating System :: POSIX :: Linux',
      'Operating System :: MacOS :: MacOS X',
      'Operating System :: Microsoft :: Windows',
  ],
  python_requires='>=3.9',
)
