[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "stackvm"
version = "0.1.0"
description = "Assembler, stack-based virtual CPU and disassembler for a small integer instruction set"
requires-python = ">=3.10"
dependencies = []
keywords = ["assembler", "disassembler", "virtual machine", "stack machine", "bytecode"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Assemblers",
    "Topic :: Software Development :: Disassemblers",
    "Topic :: Software Development :: Interpreters",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
stackvm-asm = "stackvm.assembler:main"
stackvm-cpu = "stackvm.cpu:main"
stackvm-disasm = "stackvm.disassembler:main"

[tool.hatch.build.targets.wheel]
packages = ["stackvm"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
