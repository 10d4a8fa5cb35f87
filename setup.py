from setuptools import setup, find_packages

with open('requirements.txt') as f:
    requirements = f.readlines()

with open('test-requirements.txt') as f:
    test_requirements = f.readlines()

setup(name='smoke-patch',
      description='Smoke-test a patch on one host before submitting it to CI',
      version='1.0.0',
      classifiers=[
          "Programming Language :: Python :: 3",
          "Topic :: Software Development :: Build Tools",
          "Topic :: Software Development :: Testing"
      ],
      keywords='smoke test patch build lint ci scons ninja resmoke',
      license='MIT',
      packages=find_packages(exclude=['tests', 'tests.*']),
      include_package_data=True,
      zip_safe=False,
      python_requires='>=3.8',
      install_requires=requirements,
      extras_require={'test': test_requirements},
      entry_points={
          'console_scripts': ['smoke_patch = smoke_patch.manage:main']
      },
      data_files=[('etc/smoke-patch', ['conf/config.py'])],
      )
