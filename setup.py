import setuptools


with open("README.md") as fp:
    long_description = fp.read()


setuptools.setup(
    name="ecs_app_infra",
    version="0.0.1",

    description="CDK stacks for an ECS Fargate application behind a shared load balancer",
    long_description=long_description,
    long_description_content_type="text/markdown",

    author="author",

    packages=setuptools.find_namespace_packages(include=["ecs_app_infra", "ecs_app_infra.*"]),

    install_requires=[
        "aws-cdk-lib>=2.160.0,<3.0.0",
        "constructs>=10.0.0,<11.0.0",
        "python-dotenv",
    ],

    extras_require={
        "test": [
            "pytest",
        ],
    },

    python_requires=">=3.9",

    classifiers=[
        "Development Status :: 4 - Beta",

        "Intended Audience :: Developers",

        "License :: OSI Approved :: Apache Software License",

        "Programming Language :: JavaScript",
        "Programming Language :: Python :: 3 :: Only",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",

        "Topic :: Software Development :: Code Generators",
        "Topic :: Utilities",

        "Typing :: Typed",
    ],
)
