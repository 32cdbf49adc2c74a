from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
	long_description = fh.read()

with open("requirements.txt", "r", encoding="utf-8") as fh:
	requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]

setup(
	name="docbinarize",
	version="0.1.0",
	author="CV Team",
	description="Document image binarization engine: local adaptive, Otsu and 2D Otsu thresholding",
	long_description=long_description,
	long_description_content_type="text/markdown",
	packages=find_packages(exclude=["tests", "tests.*", "scripts"]),
	classifiers=[
		"Development Status :: 3 - Alpha",
		"Intended Audience :: Developers",
		"Topic :: Scientific/Engineering :: Image Processing",
		"Programming Language :: Python :: 3",
	],
	python_requires=">=3.8",
	install_requires=requirements,
	extras_require={
		"test": ["pytest>=7.0"],
	},
)
