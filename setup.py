from setuptools import setup, find_packages

setup(
    name="gymledger",
    version="0.3.0",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    package_data={"gymledger": ["py.typed"]},
    python_requires=">=3.10",
    install_requires=[
        'requests>=2.31.0',
        'PyYAML>=6.0',
        'pandas>=2.0.0',
        'tabulate>=0.9.0',
        'typing_extensions>=4.5.0'
    ],
    extras_require={
        'test': [
            'pytest>=7.4.0'
        ]
    },
    entry_points={
        'console_scripts': [
            'gymledger=gymledger.cli:main'
        ]
    }
)
