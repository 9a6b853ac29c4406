from setuptools import setup, find_packages

with open('requirements.txt', encoding='utf-8') as freq:
    requirements = freq.readlines()

setup_args = {}

setup_args['name']                 = "lesion_triage"
setup_args['version']              = "1.0.0"
setup_args['package_dir']          = {'': 'src'}
setup_args['packages']             = find_packages(where='src')
setup_args['package_data']         = {'lesion_triage': ['config/*.yaml'],}
setup_args['python_requires']      = '>=3.10'
setup_args['install_requires']     = requirements
setup_args['extras_require']       = {'test': ['pytest']}
setup_args['entry_points']         = {'console_scripts': ['lesion-triage = lesion_triage.cli:main']}

setup(**setup_args)
