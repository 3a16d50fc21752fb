from pathlib import Path

from setuptools import find_packages, setup


def read_version(path: Path) -> str:
    """Read the version string of the package.

    The version is defined once, in the ``__init__.py`` of the package, as
    ``__version__ = "x.y.z"``. Importing the package is not an option here
    since its dependencies may not be installed yet.

    Parameters
    ----------
    path
        The path to the ``__init__.py`` file.

    Raises
    ------
    ValueError
        If no ``__version__`` line is found.
    """
    for line in path.read_text().splitlines():
        if line.startswith("__version__"):
            return line.split("=")[1].strip().strip('"')

    msg = f"No __version__ found in {path}"
    raise ValueError(msg)


# Setup the package
setup(
    name="scikit-cpd",
    version=read_version(Path("src/skcpd/__init__.py")),
    description="Coherent point drift registration in python",
    python_requires=">=3.10",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        "numpy",
        "torch",
        "beartype",
        "jaxtyping",
    ],
    extras_require={
        "test": [
            "pytest",
            "hypothesis",
        ],
    },
)
