import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from ibdl.config import Settings
from ibdl.errors import InvalidImageboardError
from ibdl.models import ImageBoards, Rating
from ibdl.services.booru import (
    DanbooruApi,
    E621Api,
    GelbooruApi,
    MoebooruApi,
    default_servers,
    get_api_for_server,
    get_server_for_url,
    read_server_cfg_file,
)
from ibdl.services.booru.servers import parse_server_cfg


class TestServerConfig(unittest.TestCase):
    def test_defaults(self):
        servers = default_servers()
        self.assertEqual(
            set(servers), {"danbooru", "e621", "gelbooru", "rule34", "realbooru", "konachan"}
        )
        self.assertEqual(servers["danbooru"].max_post_limit, 200)
        self.assertEqual(servers["e621"].max_post_limit, 320)
        self.assertEqual(servers["rule34"].max_post_limit, 1000)
        self.assertIsNone(servers["konachan"].post_url)

    def test_override_and_new_server(self):
        servers = parse_server_cfg(
            '[servers.danbooru]\nmax_post_limit = 100\n\n'
            '[servers.yandere]\nserver = "moebooru"\npretty_name = "Yande.re"\n'
            'base_url = "https://yande.re"\npost_list_url = "https://yande.re/post.json"\n'
        )
        self.assertEqual(servers["danbooru"].max_post_limit, 100)
        self.assertEqual(servers["danbooru"].pool_idx_url, "https://danbooru.donmai.us/pools")
        self.assertEqual(servers["yandere"].server, ImageBoards.moebooru)
        self.assertEqual(servers["yandere"].max_post_limit, 100)

    def test_new_server_requires_type(self):
        with self.assertRaises(InvalidImageboardError):
            parse_server_cfg('[servers.mine]\nbase_url = "https://x.org"\n')
        with self.assertRaises(InvalidImageboardError):
            parse_server_cfg('[servers.mine]\nserver = "nope"\npretty_name = "M"\nbase_url = "https://x.org"\n')

    def test_read_missing_file_gives_defaults(self):
        with tempfile.TemporaryDirectory() as tmp:
            servers = read_server_cfg_file(Path(tmp) / "servers.toml")
        self.assertEqual(servers, default_servers())


class TestFactory(unittest.TestCase):
    def test_adapter_per_board(self):
        servers = default_servers()
        self.assertIsInstance(get_api_for_server(servers["danbooru"]), DanbooruApi)
        self.assertIsInstance(get_api_for_server(servers["e621"]), E621Api)
        self.assertIsInstance(get_api_for_server(servers["realbooru"]), GelbooruApi)
        self.assertIsInstance(get_api_for_server(servers["konachan"]), MoebooruApi)

    def test_server_for_url(self):
        servers = default_servers()
        self.assertEqual(get_server_for_url("https://e621.net/posts/1", servers).name, "e621")
        self.assertEqual(
            get_server_for_url("https://api.rule34.xxx/index.php?id=1", servers).name, "rule34"
        )
        self.assertIsNone(get_server_for_url("https://example.org/posts/1", servers))
        self.assertIsNone(get_server_for_url("not a url", servers))


class TestSettings(unittest.TestCase):
    def test_reads_environment(self):
        with tempfile.TemporaryDirectory() as tmp:
            Path(tmp, "servers.toml").write_text('[servers.e621]\nmax_post_limit = 50\n')
            env = {
                "IBDL_CONFIG_DIR": tmp,
                "IBDL_E621_USERNAME": "fox",
                "IBDL_E621_API_KEY": "key",
                "IBDL_SAFE_MODE": "true",
            }
            with mock.patch.dict(os.environ, env):
                settings = Settings()
                self.assertEqual(settings.servers["e621"].max_post_limit, 50)
                credentials = settings.credentials_for(settings.servers["e621"])
                self.assertEqual((credentials.username, credentials.api_key), ("fox", "key"))
                self.assertIsNone(settings.credentials_for(settings.servers["danbooru"]))
                self.assertEqual(settings.selected_ratings(), [Rating.safe, Rating.unknown])
                self.assertEqual(settings.selected_ratings(ignore_unknown=True), [Rating.safe])
                self.assertEqual(
                    settings.selected_ratings([Rating.explicit], ignore_unknown=True), [Rating.explicit]
                )

                blacklist = settings.load_blacklist()
                self.assertTrue(Path(tmp, "blacklist.toml").exists())
                self.assertEqual(blacklist.global_tags, set())


if __name__ == "__main__":
    unittest.main()
