from setuptools import setup, find_packages
import re

# Read version from esopadmin/__init__.py
with open('esopadmin/__init__.py') as f:
    version = re.search(r'^__version__ = ["\']([^"\']+)["\']', f.read(), re.MULTILINE).group(1)

setup(
    name='esop-admin',
    version=version,
    packages=find_packages(exclude=['tests', 'tests.*']),
    install_requires=[
        'PyPDF2>=3.0.0',
        'PyYAML>=6.0',
        'click>=8.0',
        'pydantic>=2.0.0',
        'python-dateutil>=2.8',
        'rich>=13.0',
    ],
    extras_require={
        'mcp': [
            'mcp[cli]>=1.0.0,<2',
        ],
        'test': [
            'pytest>=7.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'esop-admin=esopadmin.cli.__main__:main',
            'esop-admin-mcp=esopadmin.mcp.server:run_server',
        ],
    },
    author='Personal',
    description='Employee stock option plan administration: grants, vesting and valuations.',
    python_requires='>=3.10',
)
