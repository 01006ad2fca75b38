from setuptools import setup, find_packages

setup(
    name="socketlock",
    version="1.0.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        'psutil>=5.9.0',
    ],
    extras_require={
        'test': ['pytest>=7.0'],
    },
    entry_points={
        'console_scripts': [
            'socketlock=socketlock.main:main',
        ],
    },
    description="Single-instance lock and activation for desktop applications over a loopback port",
    long_description=open('README.md').read(),
    long_description_content_type="text/markdown",
    keywords="single instance, lock, activation, loopback",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
    ],
    python_requires='>=3.8',
)
