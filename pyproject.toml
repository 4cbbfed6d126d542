[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kubetest2"
version = "0.1.0"
description = "Building blocks for Kubernetes end-to-end testing: a root command that hands off to deployers, an exec tester, and JUnit run metadata."
requires-python = ">=3.10"
dependencies = []
keywords = ["kubernetes", "e2e", "testing", "junit"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Testing",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
kubetest2 = "kubetest2.shim:main"
kubetest2-tester-exec = "kubetest2.testers.exec_tester:main"

[tool.hatch.build.targets.wheel]
packages = ["kubetest2"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
