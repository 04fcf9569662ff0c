from setuptools import setup, find_packages

excludes = ("tests", "tests.*", "docs", "docs.*", "devtools", "devtools.*")

metadata = \
    dict(
        zip_safe=False,
        packages=find_packages(where=".", exclude=excludes),
        include_package_data=True,
    )

if __name__ == '__main__':
    setup(**metadata)
