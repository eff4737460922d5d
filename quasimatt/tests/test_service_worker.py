import tempfile
import unittest
from pathlib import Path

from quasimatt.config import Settings
from quasimatt.service_worker import ServiceWorkerConfig, render_service_worker


class ServiceWorkerTests(unittest.TestCase):
    def test_default_is_cache_first_with_push(self):
        source = render_service_worker()
        self.assertIn("const CACHE_NAME = \"pwa-cache-v1\";", source)
        self.assertIn('["/style.css", "/manifest.json", "/"]', source)
        self.assertIn("response || fetch(event.request)", source)
        self.assertIn("addEventListener('activate'", source)
        self.assertIn("addEventListener('push'", source)
        self.assertIn("addEventListener('notificationclick'", source)
        self.assertIn('"New Notification"', source)
        self.assertIn('"/icon.svg"', source)

    def test_network_first(self):
        source = render_service_worker(ServiceWorkerConfig(strategy="network-first"))
        self.assertIn(".catch(() => caches.match(event.request))", source)
        self.assertNotIn("response || fetch(event.request)", source)

    def test_stripped_down_cache_first(self):
        source = render_service_worker(
            ServiceWorkerConfig(cleanup_old_caches=False, enable_push=False)
        )
        self.assertIn("addEventListener('install'", source)
        self.assertIn("addEventListener('fetch'", source)
        self.assertNotIn("addEventListener('activate'", source)
        self.assertNotIn("addEventListener('push'", source)

    def test_unknown_strategy(self):
        with self.assertRaises(ValueError):
            ServiceWorkerConfig(strategy="stale-while-revalidate")

    def test_from_settings(self):
        settings = Settings(
            _env_file=None,
            sw_cache_name="site-v2",
            sw_precache=["/"],
            sw_enable_push=False,
        )
        config = ServiceWorkerConfig.from_settings(settings)
        self.assertEqual(config.cache_name, "site-v2")
        self.assertEqual(tuple(config.precache), ("/",))
        self.assertIn('"site-v2"', render_service_worker(config))


class BuildServiceWorkerCliTests(unittest.TestCase):
    def test_cli_writes_configured_worker(self):
        from scripts.build_service_worker import main

        with tempfile.TemporaryDirectory() as tmp:
            out = Path(tmp) / "public" / "sw.js"
            code = main(
                [
                    "--out",
                    str(out),
                    "--strategy",
                    "network-first",
                    "--cache-name",
                    "site-v3",
                    "--precache",
                    "/, /offline.html",
                    "--no-push",
                    "--no-cleanup",
                ]
            )
            self.assertEqual(code, 0)
            source = out.read_text(encoding="utf-8")

        self.assertIn("network-first", source)
        self.assertIn(".catch(() => caches.match(event.request))", source)
        self.assertIn('const CACHE_NAME = "site-v3";', source)
        self.assertIn('["/", "/offline.html"]', source)
        self.assertNotIn("addEventListener('push'", source)
        self.assertNotIn("addEventListener('activate'", source)

    def test_cli_defaults(self):
        from scripts.build_service_worker import main

        with tempfile.TemporaryDirectory() as tmp:
            out = Path(tmp) / "service-worker.js"
            self.assertEqual(main(["--out", str(out)]), 0)
            source = out.read_text(encoding="utf-8")

        self.assertIn("response || fetch(event.request)", source)
        self.assertIn('"pwa-cache-v1"', source)
        self.assertIn("addEventListener('notificationclick'", source)


if __name__ == "__main__":
    unittest.main()
