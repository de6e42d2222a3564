import nox

PYTHON_VERSIONS = ["3.11", "3.12", "3.13"]

# psycopg2 ships a C extension; a cached wheel may target another interpreter.
_C_EXT_PACKAGES = ["psycopg2-binary"]


def _install(session: nox.Session) -> None:
    """Install the project and its test extra into the nox virtualenv."""
    session.run("poetry", "install", "--all-extras", external=True)
    session.run(
        "pip",
        "install",
        "--force-reinstall",
        "--no-cache-dir",
        *_C_EXT_PACKAGES,
    )


@nox.session(python=PYTHON_VERSIONS)
def tests(session: nox.Session) -> None:
    """Run the full warehouse suite."""
    _install(session)
    session.run("pytest", *session.posargs)


@nox.session(python=PYTHON_VERSIONS)
def tests_domain(session: nox.Session) -> None:
    """Run domain-layer tests only (no API, no scheduler)."""
    _install(session)
    session.run("pytest", "tests/warehouse/domain/")


@nox.session(python=PYTHON_VERSIONS[-1])
def tests_scenarios(session: nox.Session) -> None:
    """Run the BDD fulfillment and payment scenarios."""
    _install(session)
    session.run("pytest", "-m", "bdd")
