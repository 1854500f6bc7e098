from os import path
from setuptools import setup

__author__ = "Sean Robertson"
__email__ = "sdrobert@cs.toronto.edu"
__license__ = "Apache 2.0"
__copyright__ = "Copyright 2021 Sean Robertson"

PWD = path.abspath(path.dirname(__file__))
with open(path.join(PWD, "README.md"), encoding="utf-8") as readme_file:
    LONG_DESCRIPTION = readme_file.read()

setup(
    name="htk-mfcc",
    description="HTK-compatible mel-frequency cepstral coefficients in Python",
    long_description=LONG_DESCRIPTION,
    long_description_content_type="text/markdown",
    use_scm_version={
        "write_to": path.join("src", "htkmfcc", "_version.py"),
        "fallback_version": "0.1.0",
    },
    zip_safe=False,
    author=__author__,
    author_email=__email__,
    license=__license__,
    package_dir={"": "src"},
    packages=["htkmfcc"],
    python_requires=">=3.7",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "License :: OSI Approved :: Apache Software License",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Topic :: Multimedia :: Sound/Audio :: Speech",
    ],
    install_requires=["numpy"],
    extras_require={
        "fftpack": ["scipy"],
        "test": ["pytest", "scipy"],
    },
)
