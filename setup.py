import os
from setuptools import setup, find_packages

# Read README for long description if available
long_description = ""
if os.path.exists("README.md"):
    with open("README.md", encoding="utf-8") as f:
        long_description = f.read()

setup(
    name='dosdev-tool',
    version='1.0.0',
    description='Check whether an AmigaOS DOS device exists and has a volume mounted.',
    long_description=long_description,
    long_description_content_type='text/markdown',
    package_dir={'': 'src'},
    packages=find_packages(where='src'),
    python_requires='>=3.9',

    install_requires=[
        'pygments>=2.19.1',
    ],
    extras_require={
        'test': ['pytest>=7'],
    },

    include_package_data=True,

    entry_points={
        'console_scripts': [
            'checkdosdevice=dosdev_tool.cli:run',
        ],
    },

    classifiers=[
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Environment :: Console',
        'License :: OSI Approved :: MIT License',
    ],
)
