from setuptools import setup, find_packages
from codecs import open
from os import path


here = path.abspath(path.dirname(__file__))


with open(path.join(here, 'README.rst'), encoding='utf-8') as f:
    long_description = f.read()

with open(path.join(here, 'pwfio', '__init__.py')) as pkg:
    __version__ = eval(pkg.readline().split('=')[1])


setup(
    name='pwfio',
    version=__version__,
    description='Convert workout data between FIT, TCX, GPX, CSV and PWF',
    long_description=long_description,
    license='MIT',
    keywords='exercise cycling running swimming garmin fit tcx gpx workout',

    # See https://pypi.python.org/pypi?%3Aaction=list_classifiers
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Developers',
        'Topic :: Scientific/Engineering :: Medical Science Apps.',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
    ],

    packages=find_packages(),
    python_requires='>=3.9',
    install_requires=[
        'numpy>=1.21',
        'pandas>=1.5',
        'pytz>=2011',
        'fitparse>=1.2.0',
        'PyYAML>=5.4',
    ],
    extras_require={
        'test': ['pytest>=6.0'],
    },
    entry_points={
        'console_scripts': [
            'pwfio=pwfio._util.cli:parse',
        ],
    },
)
