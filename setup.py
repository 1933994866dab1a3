# setup.py

from setuptools import find_packages, setup

setup(
    name="strainfield",
    version="1.0.0",
    description="由几何变换在规则网格上生成应变张量场",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    package_data={"strainfield.core": ["default.yaml"]},
    python_requires=">=3.10",
    install_requires=[
        "numpy",
        "scipy",
        "matplotlib",
        "h5py",
        "pyyaml",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
