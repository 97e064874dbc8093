"""Setup script for Order Payments."""

from setuptools import setup, find_packages

with open("requirements.txt") as requirements:
    install_requires = [
        line.strip()
        for line in requirements
        if line.strip() and not line.startswith("#") and not line.startswith("git+")
    ]

setup(
    name="order-payments",
    version="0.1.0",
    description="Order payment notifications, refund results and installment plans for an e-commerce shop",
    author="ML Roadmap Bootcamp",
    python_requires=">=3.10",
    packages=find_packages(include=["order_payments", "order_payments.*"]),
    install_requires=install_requires,
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.23.0",
            "pytest-cov>=4.1.0",
            "aiosqlite>=0.19.0",
        ],
        "dev": [
            "black>=23.0.0",
            "isort>=5.12.0",
            "flake8>=6.0.0",
            "mypy>=1.4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "order-payments-outbox=order_payments.workers.outbox_publisher:main",
        ]
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
