[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "daprkit"
version = "1.0.0"
description = "Building blocks of a gRPC client for the Dapr sidecar: state, service invocation, pub/sub, bindings, secrets, locks and configuration."
requires-python = ">=3.10"
dependencies = [
    "grpcio",
]
keywords = [
    "dapr",
    "grpc",
    "sidecar",
    "microservices",
    "state-store",
    "pubsub",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Application Frameworks",
    "Topic :: System :: Distributed Computing",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["daprkit"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
