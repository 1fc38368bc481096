import os
import re
from setuptools import setup, find_packages


# Read the version from educrm/__init__.py without importing the Celery app
def get_version():
    with open(os.path.join(os.path.dirname(__file__), "educrm", "__init__.py")) as f:
        match = re.search(r'^__version__ = ["\']([^"\']+)["\']', f.read(), re.M)
    return match.group(1)


setup(
    name="EduCRM",
    version=get_version(),
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "Django>=4.2.25,<6.0",
        "djangorestframework>=3.15.0",
        "psycopg2-binary>=2.9.9",
        "daphne>=4.2.0",
        "django-cors-headers>=4.3.0",
        "djangorestframework-simplejwt>=5.5.1",
        "python-dotenv>=1.1.0",
        "celery>=5.3.0",
        "redis>=6.2.0",
        "django-redis>=5.4.0",
        "channels>=4.2.2",
        "channels-redis>=4.2.0",
        "django-unfold>=0.67.0",
        "whitenoise>=6.9.0",
        "drf-spectacular>=0.27.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-django>=4.8",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Framework :: Django",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.10",
)
