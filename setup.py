from glob import glob
from setuptools import setup


setup(
    name='rpnx',
    use_scm_version={
        # Building outside a git checkout.
        'fallback_version': '0.1.0',
    },
    description='RPN calculator with infix expressions',
    install_requires=[
        'regex',
        'prompt_toolkit',
    ],
    packages=['rpnx'],
    package_dir={'': 'src'},
    include_package_data=True,
    zip_safe=False,
    classifiers=[
        "Programming Language :: Python :: 3",
    ],
    python_requires='>=3.7',
    setup_requires=[
        'setuptools_scm',
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-cov',
            'coverage',
            'flake8',
        ],
    },
    scripts=glob('bin/*'),
    license='ISC',
)
