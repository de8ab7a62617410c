"""
Setup script for the markupaudit package.
"""

from setuptools import setup, find_packages
import os

# Read the README
readme_path = os.path.join(os.path.dirname(__file__), 'README.md')
if os.path.exists(readme_path):
    with open(readme_path, 'r', encoding='utf-8') as f:
        long_description = f.read()
else:
    long_description = "Accessibility and SEO auditor for frontend projects."

setup(
    name="markupaudit",
    version="1.0.0",
    author="markupaudit Team",
    author_email="markupaudit@example.com",
    description="Static accessibility and SEO auditing for frontend projects, with safe automatic fixes",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/markupaudit/markupaudit",
    packages=find_packages(exclude=["tests", "tests.*", "examples", "examples.*"]),
    python_requires=">=3.8",
    install_requires=[
        "pyyaml>=6.0",
        "rich>=13.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "pytest-cov>=4.0",
            "black>=23.0",
            "mypy>=1.0",
            "ruff>=0.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "markupaudit=markupaudit.cli:main",
            "maudit=markupaudit.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Quality Assurance",
        "Topic :: Internet :: WWW/HTTP :: Site Management",
    ],
    keywords="accessibility, a11y, wcag, seo, nextjs, react, static-analysis, auto-fix",
    project_urls={
        "Bug Reports": "https://github.com/markupaudit/markupaudit/issues",
        "Documentation": "https://github.com/markupaudit/markupaudit#readme",
        "Source": "https://github.com/markupaudit/markupaudit",
    },
)
