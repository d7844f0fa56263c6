from setuptools import setup


with open("README.md") as fp:
    DESCRIPTION = fp.read()


headline = DESCRIPTION.split("\n", 1)[0].lstrip("# ").rstrip(".")


setup(
    name="vtablegen",
    version="0.1",
    description=headline,
    long_description=DESCRIPTION,
    long_description_content_type="text/markdown",
    packages=["vtablegen"],
    include_package_data=True,
    license="MIT",
    python_requires=">=3.6",
    extras_require={"test": ["pytest", "flatbuffers"]},
    entry_points={"console_scripts": ["vtablegen = vtablegen.__main__:main"]},
    classifiers=[
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
    ],
)
