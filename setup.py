import setuptools

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setuptools.setup(
    name="listing_photo_quality",
    version="0.1.0",
    author="Alejandro Sanchez Ferrer",
    author_email="asanc.tech@gmail.com",
    description="Technical and compositional quality analysis for real-estate listing photos",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=setuptools.find_packages(where="src"),
    package_dir={"": "src"},
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.8",
    install_requires=[
        "numpy",
        "opencv-python",
        "scipy",
        "tqdm",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "listing-quality=listing_quality.cli:main",
        ],
    },
)
