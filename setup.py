from setuptools import setup, find_packages


setup(
    name="lz4jb",
    version="0.2.0",
    packages=find_packages(include=["lz4jb", "lz4jb.*"]),
    description="Streaming reader/writer for the lz4-java LZ4Block container (LZ4BlockOutputStream format).",
    python_requires=">=3.8",
    install_requires=[
        "lz4>=4.0.0",
        "xxhash>=2.0.0",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "lz4jb=lz4jb.cli:main",
        ]
    },
)
