from setuptools import setup, find_packages

with open("requirements.txt") as f:
    required = f.read().splitlines()

setup(
    name="discordmd",
    version="0.0.1",
    package_dir={"": "src"},
    packages=find_packages("src"),
    install_requires=required,
    extras_require={"test": ["pytest"]},
    entry_points={"console_scripts": ["discordmd = discordmd.cli:main"]},
    author="jmpaz",
    description="Discord-flavored markdown renderer",
)
