"""Install the casgate package."""

from setuptools import setup, find_packages

setup(
    name='casgate',
    version='0.1.0',
    packages=find_packages(include=['casgate', 'casgate.*'],
                           exclude=['*test*']),
    install_requires=[
        "flask",
        "werkzeug",
        "redis",
        "requests",
        "click",
        "python-json-logger>=3.1,<4",
    ],
    extras_require={
        'test': [
            "pytest",
            "hypothesis",
        ],
    },
    entry_points={
        'console_scripts': ['casgate=casgate.cli:main'],
    },
    zip_safe=False
)
