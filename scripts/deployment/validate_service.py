#!/usr/bin/env python3
"""
Validation script for the tinylinks service.
Tests the live running service to ensure all functionality works correctly.
"""

import argparse
import sys
import time
from datetime import datetime
from typing import Optional

import requests


class ServiceValidator:
    """Validates tinylinks service functionality."""

    def __init__(self, base_url: str = "http://localhost:9200"):
        self.base_url = base_url.rstrip("/")
        self.session = requests.Session()
        self.test_results = []

    def print_header(self, text: str):
        """Print a formatted header."""
        print(f"\n{'='*60}")
        print(f"  {text}")
        print(f"{'='*60}\n")

    def print_test(self, name: str, passed: bool, details: str = ""):
        """Print test result."""
        status = "PASS" if passed else "FAIL"
        self.test_results.append((name, passed))
        print(f"{status} - {name}")
        if details:
            print(f"       {details}")

    def _shorten(self, *items: dict) -> requests.Response:
        return self.session.post(f"{self.base_url}/api/shorten", json={"urls": list(items)}, timeout=5)

    def test_health_check(self) -> bool:
        try:
            response = self.session.get(f"{self.base_url}/api/health", timeout=5)
            if response.status_code != 200:
                self.print_test("Health Check", False, f"Status: {response.status_code}")
                return False
            data = response.json()
            is_healthy = data.get("status") == "healthy"
            self.print_test("Health Check", is_healthy, f"Store: {data.get('store')}, Records: {data.get('records')}")
            return is_healthy
        except requests.RequestException as e:
            self.print_test("Health Check", False, f"Error: {e}")
            return False

    def test_create_short_url(self) -> Optional[str]:
        try:
            test_url = f"https://example.com/test/{int(time.time())}"
            response = self._shorten({"url": test_url})
            if response.status_code == 200:
                link = response.json()["links"][0]
                self.print_test("Create Short URL", True, f"Code: {link['short_code']}, URL: {link['short_url']}")
                return link["short_code"]
            self.print_test("Create Short URL", False, f"Status: {response.status_code}")
            return None
        except requests.RequestException as e:
            self.print_test("Create Short URL", False, f"Error: {e}")
            return None

    def test_batch_create(self) -> bool:
        try:
            stamp = int(time.time())
            response = self._shorten(
                {"url": f"https://example.com/batch/{stamp}/1"},
                {"url": f"https://example.com/batch/{stamp}/2", "validity_minutes": 60},
            )
            ok = response.status_code == 200 and len(response.json().get("links", [])) == 2
            self.print_test("Batch Create", ok, f"Status: {response.status_code}")
            return ok
        except requests.RequestException as e:
            self.print_test("Batch Create", False, f"Error: {e}")
            return False

    def test_resolve(self, short_code: str) -> bool:
        """Resolving counts a click."""
        try:
            response = self.session.get(
                f"{self.base_url}/api/resolve/{short_code}",
                headers={"Referer": "https://validator.local/"},
                timeout=5,
            )
            ok = response.status_code == 200 and response.json().get("click_count", 0) >= 1
            self.print_test("Resolve", ok, f"Status: {response.status_code}")
            return ok
        except requests.RequestException as e:
            self.print_test("Resolve", False, f"Error: {e}")
            return False

    def test_get_url_info(self, short_code: str) -> bool:
        try:
            response = self.session.get(f"{self.base_url}/api/urls/{short_code}", timeout=5)
            if response.status_code != 200:
                self.print_test("Get URL Info", False, f"Status: {response.status_code}")
                return False
            data = response.json()
            has_clicks = data.get("click_count") == len(data.get("clicks", []))
            self.print_test("Get URL Info", has_clicks, f"Click count: {data.get('click_count')}")
            return has_clicks
        except requests.RequestException as e:
            self.print_test("Get URL Info", False, f"Error: {e}")
            return False

    def test_redirect_page(self, short_code: str) -> bool:
        try:
            response = self.session.get(f"{self.base_url}/{short_code}", timeout=5)
            ok = response.status_code == 200 and "Redirecting" in response.text
            self.print_test("Redirect Page", ok, f"Status: {response.status_code}")
            return ok
        except requests.RequestException as e:
            self.print_test("Redirect Page", False, f"Error: {e}")
            return False

    def test_duplicate_custom_code(self) -> bool:
        try:
            custom_code = f"test{int(time.time())}"
            first = self._shorten({"url": "https://example.com/custom", "custom_code": custom_code})
            if first.status_code != 200:
                self.print_test("Duplicate Code Rejection", False, f"Setup status: {first.status_code}")
                return False
            response = self._shorten({"url": "https://different-url.com", "custom_code": custom_code})
            is_conflict = response.status_code == 409
            self.print_test(
                "Duplicate Code Rejection",
                is_conflict,
                f"Status: {response.status_code} (expected 409)"
            )
            return is_conflict
        except requests.RequestException as e:
            self.print_test("Duplicate Code Rejection", False, f"Error: {e}")
            return False

    def test_invalid_url(self) -> bool:
        try:
            response = self._shorten({"url": "not-a-valid-url"})
            is_rejected = response.status_code == 400 and response.json().get("code") == "invalid_url"
            self.print_test(
                "Invalid URL Rejection",
                is_rejected,
                f"Status: {response.status_code} (expected 400)"
            )
            return is_rejected
        except requests.RequestException as e:
            self.print_test("Invalid URL Rejection", False, f"Error: {e}")
            return False

    def test_nonexistent_code(self) -> bool:
        try:
            response = self.session.get(f"{self.base_url}/api/resolve/nonexistent999", timeout=5)
            is_not_found = response.status_code == 404
            self.print_test(
                "Non-existent Code",
                is_not_found,
                f"Status: {response.status_code} (expected 404)"
            )
            return is_not_found
        except requests.RequestException as e:
            self.print_test("Non-existent Code", False, f"Error: {e}")
            return False

    def test_list_endpoint(self) -> bool:
        try:
            response = self.session.get(f"{self.base_url}/api/urls", params={"sort": "clicks"}, timeout=5)
            if response.status_code != 200:
                self.print_test("List Endpoint", False, f"Status: {response.status_code}")
                return False
            summary = response.json().get("summary", {})
            self.print_test("List Endpoint", "total_urls" in summary, f"Total URLs: {summary.get('total_urls')}")
            return "total_urls" in summary
        except requests.RequestException as e:
            self.print_test("List Endpoint", False, f"Error: {e}")
            return False

    def test_web_interface(self) -> bool:
        try:
            response = self.session.get(f"{self.base_url}/", timeout=5)
            is_ok = response.status_code == 200 and "text/html" in response.headers.get("content-type", "")
            self.print_test(
                "Web Interface",
                is_ok,
                f"Content-Type: {response.headers.get('content-type', 'N/A')}"
            )
            return is_ok
        except requests.RequestException as e:
            self.print_test("Web Interface", False, f"Error: {e}")
            return False

    def run_all_tests(self) -> bool:
        """Run all validation tests."""
        self.print_header("tinylinks Service Validation")
        print(f"Testing service at: {self.base_url}")
        print(f"Timestamp: {datetime.now().isoformat()}\n")

        if not self.test_health_check():
            print("\nHealth check failed. Service may not be running.")
            print(f"   Make sure the service is accessible at {self.base_url}")
            return False

        print()

        short_code = self.test_create_short_url()
        if short_code:
            self.test_resolve(short_code)
            self.test_get_url_info(short_code)
            self.test_redirect_page(short_code)
        self.test_batch_create()

        print()

        self.test_duplicate_custom_code()
        self.test_invalid_url()
        self.test_nonexistent_code()

        print()

        self.test_list_endpoint()
        self.test_web_interface()

        self.print_summary()

        return all(passed for _, passed in self.test_results)

    def print_summary(self):
        """Print test summary."""
        total = len(self.test_results)
        passed = sum(1 for _, p in self.test_results if p)
        failed = total - passed

        self.print_header("Test Summary")
        print(f"Total Tests:  {total}")
        print(f"Passed:       {passed}")
        print(f"Failed:       {failed}")
        print(f"Success Rate: {(passed/total*100):.1f}%")

        if failed > 0:
            print("\nFailed tests:")
            for name, passed in self.test_results:
                if not passed:
                    print(f"   - {name}")

        print()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Validate tinylinks service functionality"
    )
    parser.add_argument(
        "--url",
        default="http://localhost:9200",
        help="Base URL of the service (default: http://localhost:9200)"
    )

    args = parser.parse_args()

    validator = ServiceValidator(args.url)

    try:
        success = validator.run_all_tests()
        sys.exit(0 if success else 1)
    except KeyboardInterrupt:
        print("\n\nValidation interrupted by user")
        sys.exit(2)


if __name__ == "__main__":
    main()
