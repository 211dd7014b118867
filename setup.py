from setuptools import setup, find_packages


setup(
    name="vpkarchive",
    version="0.1",
    packages=find_packages(include=["vpkarchive", "vpkarchive.*"]),
    description="Reader and writer for VPK packed-asset archives (_dir.vpk plus numbered segment files).",
    python_requires=">=3.8",
    install_requires=[],
    entry_points={
        "console_scripts": [
            "vpkarchive=vpkarchive.cli:main",
        ]
    },
)
