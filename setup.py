from setuptools import find_packages, setup

setup(
    name='enginesync',
    version='0.1.0',
    description='Synchronize an engine binary tree with S3-compatible object storage',
    package_dir={'': 'src'},
    packages=find_packages(where='src'),
    python_requires='>=3.9',
    install_requires=[
        'requests',
        'PyYAML',
        'platformdirs',
        'rich',
    ],
    extras_require={
        'test': [
            'pytest<9',
            'pytest-mock',
        ],
    },
    entry_points={
        'console_scripts': [
            'enginesync=enginesync.cli:main',
        ],
    },
)
