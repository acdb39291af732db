[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tavernchat"
version = "0.1.0"
description = "A fantasy tavern chat server: TCP clients talk to each other with tones, targets and emotes."
requires-python = ">=3.10"
dependencies = []
keywords = ["chat", "tavern", "tcp", "asyncio", "server"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Framework :: AsyncIO",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Chat",
]

[project.optional-dependencies]
test = ["pytest", "pytest-asyncio"]

[project.scripts]
tavernchat = "tavernchat.server:main"

[tool.hatch.build.targets.wheel]
packages = ["tavernchat"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
