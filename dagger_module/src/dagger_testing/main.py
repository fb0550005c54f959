"""Dagger pipeline for the hello-stack backend and frontend.

Runs the test suites in uv containers and starts the backend as a bound
service so its HTTP contract can be checked from outside the process.
"""

import asyncio

import dagger as dg
from dagger import dag, function, object_type

BACKEND_PORT = 5000


@object_type
class HelloStackPipeline:
    """Containerised checks for hello-stack.

    - unit tests on one or several Python versions
    - the backend running as a Dagger service
    - curl probes and the e2e suite against that service
    """

    @function
    def test_container(
        self, source: dg.Directory, python_version: str = "3.12"
    ) -> dg.Container:
        """Create a base container with uv and the project source.

        Args:
            source: Project directory
            python_version: Python version to use (default: 3.12)

        Returns:
            Container with uv, the uv cache and the source mounted at /app
        """
        uv_cache = dag.cache_volume("uv")

        return (
            dag.container()
            .from_(f"ghcr.io/astral-sh/uv:python{python_version}-bookworm-slim")
            .with_mounted_cache("/root/.cache/uv", uv_cache)
            .with_directory("/app", source)
            .with_workdir("/app")
            .with_env_variable("UV_SYSTEM_PYTHON", "1")
        )

    @function
    async def unit_test(
        self, source: dg.Directory, python_version: str = "3.12"
    ) -> str:
        """Run the unit suite with pytest.

        Args:
            source: Project directory
            python_version: Python version to use

        Returns:
            Test output from pytest
        """
        return await self.run_test(source, "tests/unit", python_version)

    @function
    async def unit_test_matrix(
        self, source: dg.Directory, versions: str = "3.10,3.11,3.12"
    ) -> str:
        """Run the unit suite concurrently on several Python versions.

        Args:
            source: Project directory
            versions: Comma-separated list of Python versions

        Returns:
            One PASSED/FAILED block per version
        """
        version_list = [v.strip() for v in versions.split(",")]

        async def test_version(version: str) -> str:
            try:
                result = await self.unit_test(source, version)
                return f"Python {version}: PASSED\n{result}"
            except dg.ExecError as e:
                return f"Python {version}: FAILED\n{e.stdout}{e.stderr}"

        results = await asyncio.gather(*[test_version(v) for v in version_list])

        output_lines = ["=== MULTI-VERSION TEST RESULTS ===", ""]
        for result in results:
            output_lines.extend([result, "=" * 50, ""])

        return "\n".join(output_lines)

    @function
    async def run_test(
        self, source: dg.Directory, path: str, python_version: str = "3.12"
    ) -> str:
        """Run pytest on a path inside the project.

        Args:
            source: Project directory
            path: Test file or directory, relative to the project root
            python_version: Python version to use

        Returns:
            Test output from pytest
        """
        return await (
            self.test_container(source, python_version)
            .with_exec(["uv", "pip", "install", "-e", ".[test]"])
            .with_exec(["pytest", path, "-v", "--tb=short"])
            .stdout()
        )

    @function
    def backend_service(
        self, source: dg.Directory, python_version: str = "3.12"
    ) -> dg.Service:
        """Run the backend as a Dagger service on port 5000.

        Bind it into another container under an alias to reach
        ``http://<alias>:5000/api``.
        """
        return (
            self.test_container(source, python_version)
            .with_exec(["uv", "pip", "install", "-e", "."])
            .with_exposed_port(BACKEND_PORT)
            .as_service(args=["python", "-m", "hello_stack.backend"])
        )

    @function
    async def probe_backend(
        self, source: dg.Directory, python_version: str = "3.12"
    ) -> str:
        """Call the running backend with curl and report what came back.

        Shows the JSON body of ``GET /api`` and the cross-origin header
        returned to a request carrying a foreign ``Origin``.
        """
        backend = self.backend_service(source, python_version)

        client = (
            dag.container()
            .from_("alpine:latest")
            .with_exec(["apk", "add", "--no-cache", "curl", "jq"])
            .with_service_binding("api", backend)
        )

        body = await client.with_exec(
            ["sh", "-c", f"curl -s http://api:{BACKEND_PORT}/api | jq ."]
        ).stdout()

        cors_header = await client.with_exec(
            [
                "sh",
                "-c",
                f"curl -s -D - -o /dev/null -H 'Origin: http://localhost:3000' "
                f"http://api:{BACKEND_PORT}/api | grep -i access-control-allow-origin",
            ]
        ).stdout()

        result_lines = [
            "=== BACKEND PROBE ===",
            "",
            "GET /api:",
            body,
            "",
            "Cross-origin header:",
            cors_header,
        ]

        return "\n".join(result_lines)

    @function
    async def integration_test(
        self, source: dg.Directory, python_version: str = "3.12"
    ) -> str:
        """Run tests/e2e against the backend bound as ``api``."""
        backend = self.backend_service(source, python_version)

        return await (
            self.test_container(source, python_version)
            .with_service_binding("api", backend)
            .with_env_variable("API_BASE_URL", f"http://api:{BACKEND_PORT}")
            .with_exec(["uv", "pip", "install", "-e", ".[test]"])
            .with_exec(["pytest", "tests/e2e", "-v", "--tb=short"])
            .stdout()
        )
