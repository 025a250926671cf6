from setuptools import setup, find_packages

install_requires = [
    # --- DATA MODEL & CONFIG ---
    "pydantic>=2.0.0",
    "pyyaml>=6.0.0",
    "python-dotenv>=1.0.0",

    # --- TESTS---
    "pytest-asyncio>=1.0.0",
    "pytest>=8.0.0",
]

setup(
    name="saintdaniels",
    version="0.1.0",
    description="SaintDaniels healthcare-rewards session core",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"saintdaniels.shared.config": ["settings/*.yaml"]},
    include_package_data=True,
    install_requires=install_requires,
    python_requires=">=3.11",
)
