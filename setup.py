from setuptools import setup

package_name = 'hybrid_dynamics'

setup(
    name=package_name,
    version='0.1.0',
    packages=[package_name],
    package_dir={package_name: 'src'},
    install_requires=['setuptools', 'numpy', 'scipy'],
    extras_require={
        'test': ['pytest'],
    },
    zip_safe=True,
    maintainer='root',
    maintainer_email='franche1984@gmail.com',
    description='Vereshchagin hybrid dynamics solver for serial chains using twist-wrench formulation',
    license='MIT',
    tests_require=['pytest'],
    entry_points={
        'console_scripts': [
            'hybrid_dynamics_cli = hybrid_dynamics.cli:entry_point',
        ],
    },
)
