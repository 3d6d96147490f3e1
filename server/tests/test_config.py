# ─────────────────────────────────────────────────────────────────────────────
# Tests: Settings
# ─────────────────────────────────────────────────────────────────────────────

from lemint.config import Settings, get_settings


class TestSettings:
    def test_defaults(self):
        settings = Settings(admin_private_key="")
        assert settings.chain_configured is False
        assert settings.collection_symbol == "LMNFT"
        assert settings.default_token_id == 1
        assert settings.mint_gas_limit == 500_000

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("COLLECTION_ADDRESS", "0x" + "cd" * 20)
        monkeypatch.setenv("MINT_RATE_LIMIT", "1/second")
        settings = Settings()
        assert settings.collection_address == "0x" + "cd" * 20
        assert settings.mint_rate_limit == "1/second"

    def test_chain_configured_with_key(self):
        assert Settings(admin_private_key="0x" + "01" * 32).chain_configured is True

    def test_secrets_hidden_in_repr(self):
        settings = Settings(pinata_secret_api_key="super-secret")
        assert "super-secret" not in repr(settings)

    def test_cors_origins(self):
        assert Settings(allowed_origins="").cors_origins == ["*"]
        assert Settings(allowed_origins=" https://a.test , https://b.test,").cors_origins == [
            "https://a.test",
            "https://b.test",
        ]

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_legacy_rpc_env_name(self, monkeypatch):
        monkeypatch.delenv("RPC_URL", raising=False)
        monkeypatch.setenv("LUKSO_RPC_URL", "https://rpc.mainnet.lukso.network")
        assert Settings().rpc_url == "https://rpc.mainnet.lukso.network"

    def test_rpc_url_wins_over_legacy_name(self, monkeypatch):
        monkeypatch.setenv("RPC_URL", "https://rpc.a.test")
        monkeypatch.setenv("LUKSO_RPC_URL", "https://rpc.b.test")
        assert Settings().rpc_url == "https://rpc.a.test"

    def test_rpc_url_default(self, monkeypatch):
        monkeypatch.delenv("RPC_URL", raising=False)
        monkeypatch.delenv("LUKSO_RPC_URL", raising=False)
        assert Settings().rpc_url == "https://rpc.testnet.lukso.network"

    def test_port_env_is_left_to_uvicorn(self, monkeypatch):
        monkeypatch.setenv("PORT", "8080")
        settings = Settings()
        assert "port" not in Settings.model_fields
        assert not hasattr(settings, "port")
