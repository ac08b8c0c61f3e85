from glob import glob
from setuptools import setup, find_packages

package_name = 'kickerbot'

data_files = [
    ('share/' + package_name + '/config', glob('config/*.yaml')),
]

setup(
    name=package_name,
    version='0.3.0',
    description='Networked EV3 soccer robot controller',
    packages=find_packages(exclude=['tests', 'tests.*']),
    data_files=data_files,
    python_requires='>=3.10',
    install_requires=[
        'numpy',
        'PyYAML',
    ],
    extras_require={
        'ev3': ['python-ev3dev2'],
        'test': ['pytest'],
    },
    zip_safe=True,
    entry_points={
        'console_scripts': [
            'kickerbot = kickerbot.main:main',
        ],
    },
)
