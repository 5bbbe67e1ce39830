from setuptools import setup, find_packages

major = 0

__version__ = '0.1.0'

requirements = [
    'coloredlogs>=15.0',
    'pymongo>=4.0',
]

test_requirements = [
    'pytest>=7.0',
]

setup(
    name='nftledger',
    version=__version__,
    description='Non-fungible token ownership ledger with delegated transfers and receiver-checked safe transfers.',
    packages=find_packages(exclude=['tests', 'tests.*']),
    install_requires=requirements,
    extras_require={
        'test': test_requirements,
    },
    classifiers=[
        'Programming Language :: Python :: 3',
    ],
    python_requires='>=3.8',
    zip_safe=True,
    include_package_data=True,
)
