from setuptools import setup, find_packages

setup(
    name="dkci",
    version="0.1.0",
    description="Export Docker images to disk or Baidu Netdisk and import them back",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    python_requires=">=3.11",
    install_requires=["InquirerPy", "tqdm", "docker"],
    extras_require={"test": ["pytest"]},
    entry_points={
        "console_scripts": [
            "dkci=dkci.__main__:main",
        ]
    },
)
