#!/usr/bin/env python3
"""
Live smoke test for the Badge Service API.
Hits a running server (BADGE_BACKEND_URL, default http://localhost:8001) and
checks static badges, icon handling, cache headers and dynamic badges.
"""

import requests
import base64
import re
import sys
import time
from datetime import datetime
import os

BACKEND_URL = os.environ.get('BADGE_BACKEND_URL', 'http://localhost:8001')
API_BASE_URL = f"{BACKEND_URL}/api"

print(f"Testing backend at: {API_BASE_URL}")

ICON_HREF_RE = re.compile(r'<image href="data:image/svg\+xml;base64,([^"]+)"')


class BadgeAPITester:
    def __init__(self):
        self.session = requests.Session()
        self.test_results = []

    def log_test(self, test_name, success, details="", response_data=None):
        """Log test results"""
        status = "PASS" if success else "FAIL"
        print(f"{status} {test_name}")
        if details:
            print(f"   Details: {details}")
        if response_data and not success:
            print(f"   Response: {response_data}")
        print()

        self.test_results.append({
            'test': test_name,
            'success': success,
            'details': details,
            'timestamp': datetime.now().isoformat()
        })

    def _badge(self, path="/badge", **params):
        return self.session.get(f"{API_BASE_URL}{path}", params=params, timeout=30)

    def test_health_check(self):
        """Test 1: Basic API Health Check"""
        try:
            response = self.session.get(f"{API_BASE_URL}/health", timeout=10)
            if response.status_code == 200 and response.json().get("status") == "ok":
                self.log_test("Health Check", True, f"Server responding: {response.json()}")
                return True
            self.log_test("Health Check", False, f"HTTP {response.status_code}", response.text)
            return False
        except Exception as e:
            self.log_test("Health Check", False, f"Connection error: {str(e)}")
            return False

    def test_text_badge(self):
        """Test 2: Text-only badge with a named background"""
        try:
            response = self._badge(text="Build", bgColor="green")
            ok = (
                response.status_code == 200
                and response.headers.get("Content-Type", "").startswith("image/svg+xml")
                and 'fill="rgb(76, 175, 80)"' in response.text
                and ">Build</text>" in response.text
                and "<image" not in response.text
            )
            self.log_test("Text Badge", ok, f"HTTP {response.status_code}", response.text[:300])
            return ok
        except Exception as e:
            self.log_test("Text Badge", False, f"Error: {str(e)}")
            return False

    def test_provider_icon_recolor(self):
        """Test 3: Provider icon recolored to the requested color"""
        try:
            response = self._badge(text="GitHub", icon="simple-icons:github", iconColor="FF0000")
            match = ICON_HREF_RE.search(response.text)
            if not match:
                self.log_test("Provider Icon Recolor", False, "No icon embedded (CDN unreachable?)", response.text[:300])
                return False
            markup = base64.b64decode(match.group(1)).decode("utf-8", errors="replace")
            ok = "rgb(255, 0, 0)" in markup
            self.log_test("Provider Icon Recolor", ok, f"Icon markup {len(markup)} chars")
            return ok
        except Exception as e:
            self.log_test("Provider Icon Recolor", False, f"Error: {str(e)}")
            return False

    def test_broken_icon_degrades(self):
        """Test 4: A failing icon URL still produces a badge"""
        try:
            response = self._badge(text="Still here", icon="https://example.invalid/missing.png")
            ok = response.status_code == 200 and ">Still here</text>" in response.text and "<image" not in response.text
            self.log_test("Broken Icon Degrades", ok, f"HTTP {response.status_code}", response.text[:300])
            return ok
        except Exception as e:
            self.log_test("Broken Icon Degrades", False, f"Error: {str(e)}")
            return False

    def test_cache_headers(self):
        """Test 5: Default, busted and explicit cache headers"""
        try:
            default = self._badge(text="x").headers.get("Cache-Control", "")
            busted = self._badge(text="x", v="1").headers.get("Cache-Control", "")
            explicit = self._badge(text="x", cacheSeconds="60").headers.get("Cache-Control", "")
            ok = default.startswith("public, max-age=") and "no-store" in busted and explicit == "public, max-age=60"
            self.log_test("Cache Headers", ok, f"default={default!r} busted={busted!r} explicit={explicit!r}")
            return ok
        except Exception as e:
            self.log_test("Cache Headers", False, f"Error: {str(e)}")
            return False

    def test_dynamic_viewers(self):
        """Test 6: Viewer counter increments"""
        try:
            repo = f"smoke-test/{int(time.time())}"
            first = self._badge("/badge/dynamic/viewers", repo=repo)
            second = self._badge("/badge/dynamic/viewers", repo=repo)
            ok = ">1</text>" in first.text and ">2</text>" in second.text
            self.log_test("Dynamic Viewers", ok, f"HTTP {first.status_code}/{second.status_code}")
            return ok
        except Exception as e:
            self.log_test("Dynamic Viewers", False, f"Error: {str(e)}")
            return False

    def test_error_handling(self):
        """Test 7: Parameter errors map to 400 plain text"""
        try:
            missing = self._badge("/badge/dynamic/stars")
            invalid = self._badge("/badge/dynamic/nope", repo="a/b")
            ok = (
                missing.status_code == 400 and missing.text == "Missing repo parameter"
                and invalid.status_code == 400 and invalid.text == "Invalid badge type"
            )
            self.log_test("Error Handling", ok, f"missing={missing.text!r} invalid={invalid.text!r}")
            return ok
        except Exception as e:
            self.log_test("Error Handling", False, f"Error: {str(e)}")
            return False

    def run_all_tests(self):
        """Run all backend tests"""
        print("Starting Badge Service API Tests")
        print("=" * 70)
        print()

        tests = [
            self.test_health_check,
            self.test_text_badge,
            self.test_provider_icon_recolor,
            self.test_broken_icon_degrades,
            self.test_cache_headers,
            self.test_dynamic_viewers,
            self.test_error_handling,
        ]

        passed = 0
        total = len(tests)

        for test in tests:
            try:
                if test():
                    passed += 1
                time.sleep(0.2)
            except Exception as e:
                print(f"Test {test.__name__} failed with exception: {str(e)}")

        print("=" * 70)
        print(f"TEST SUMMARY: {passed}/{total} tests passed")
        print("=" * 70)

        if passed == total:
            print("All tests passed! Backend is working correctly.")
        else:
            print(f"{total - passed} test(s) failed. Check the details above.")

        return passed == total


def main():
    """Main test execution"""
    tester = BadgeAPITester()
    success = tester.run_all_tests()

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
