import nox

# If a package is not installed in the virtualenv, raise an error
# (default is False and the package is loaded from the system)
nox.options.error_on_external_run = True


# From https://github.com/facebookresearch/hydra/blob/main/noxfile.py
def install_cpu_torch(session: nox.Session) -> None:
    """
    Install the CPU version of pytorch.
    This is a much smaller download size than the normal version `torch`
    package hosted on pypi.
    The smaller download prevents our CI jobs from timing out.
    """
    session.install(
        "torch", "--extra-index-url", "https://download.pytorch.org/whl/cpu"
    )


@nox.session(python=["3.11"])
def tests(session: nox.Session) -> None:
    """Run the tests."""
    install_cpu_torch(session)
    session.install(".[test]")
    session.run("pytest", *session.posargs)
