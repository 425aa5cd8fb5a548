"""
Setup script for netdash.

Usage:
    pip install .            # install the `netdash` command
    pip install -e '.[test]' # development install with test tools

Runtime requirements beyond Python: NetworkManager (nmcli), and
optionally notify-send and nm-connection-editor.
"""
from setuptools import setup

setup(
    name='netdash',
    version='0.3.0',
    description='Terminal dashboard for bandwidth, Wi-Fi and VPN connections on Linux',
    python_requires='>=3.9',
    packages=[
        'monitor',
        'storage',
        'config',
        'app',
        'app.views',
    ],
    py_modules=['netdash'],
    install_requires=[
        'psutil>=5.9',
        'rich>=13.0',
    ],
    extras_require={
        'test': [
            'pytest>=7.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'netdash=netdash:main',
        ],
    },
    classifiers=[
        'Environment :: Console',
        'Operating System :: POSIX :: Linux',
        'Topic :: System :: Networking :: Monitoring',
    ],
)
