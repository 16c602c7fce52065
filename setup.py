from setuptools import setup, find_packages

setup(
    name="karaoke-lyrics",
    version="0.1.0",
    description="Per-character karaoke timing for LRC lyrics, synthesized from the song's audio energy peaks",
    long_description=open("README.md", encoding="utf-8").read(),
    long_description_content_type="text/markdown",
    python_requires=">=3.10",
    license="MIT",
    packages=find_packages(exclude=["tests*"]),
    package_data={"karaoke_lyrics": ["py.typed"]},
    install_requires=[
        "numpy",
        "soundfile",
        "typer",
    ],
    extras_require={
        "dev": [
            "pytest",
            "black",
            "ruff",
            "mypy",
        ]
    },
    entry_points={
        "console_scripts": [
            "karaoke-lyrics=karaoke_lyrics.cli:main",
        ]
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Multimedia :: Sound/Audio :: Analysis",
        "Topic :: Utilities",
    ],
    keywords="lyrics karaoke lrc word timing audio energy",
)
