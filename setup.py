from setuptools import find_packages, setup

VERSION = "1.0.0"


setup(
    name="auto-power-profile",
    version=VERSION,
    description="Automatic power profile switching for Linux",
    long_description="Switches power-profiles-daemon profiles on power source changes, low battery and running performance applications.",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    install_requires=[
        "click",
        "dasbus",
        "psutil",
        "PyGObject",
    ],
    extras_require={"test": ["pytest"]},
    include_package_data=True,
    zip_safe=True,
    license="GPLv3",
    keywords="linux power profile battery upower power-profiles-daemon auto",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: End Users/Desktop",
        "Operating System :: POSIX :: Linux",
        "Environment :: Console",
        "Natural Language :: English",
    ],
    entry_points={
        "console_scripts": [
            "auto-power-profile=auto_power_profile.bin.auto_power_profile:main",
        ],
    },
)
