from setuptools import setup, find_packages

setup(
    name='releasefetch',
    version='0.1.0',
    description='Resolve a GitHub release and download its assets',
    package_dir={'': 'src'},
    packages=find_packages(where='src'),
    python_requires='>=3.10',
    install_requires=[
        'aiohttp',
        'aiofiles',
        'platformdirs',
        'PyYAML',
        'rich',
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-asyncio',
            'pytest-mock',
        ],
    },
    entry_points={
        'console_scripts': [
            'releasefetch=releasefetch.cli:main',
        ],
    },
)
