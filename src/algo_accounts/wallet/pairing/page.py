"""
HTML page served by the local pairing server.

The page reads its settings from ``window.__PAIRING_CONFIG__`` and follows
the pairing status over the server's websocket.
"""

from __future__ import annotations
from typing import Any, Dict
import json

CONFIG_PLACEHOLDER = "<!--CONFIG_PLACEHOLDER-->"

PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>Connect wallet</title>
  <style>
    body { font-family: system-ui, sans-serif; background: #f4f5f7; color: #1c1e21;
           display: flex; justify-content: center; padding-top: 48px; margin: 0; }
    main { background: #fff; border-radius: 12px; padding: 32px; width: 360px;
           box-shadow: 0 4px 24px rgba(0, 0, 0, .08); text-align: center; }
    img { width: 256px; height: 256px; }
    #status { margin-top: 16px; font-weight: 600; }
    .connected { color: #1a7f37; }
    .error, .timeout { color: #cf222e; }
    details { margin-top: 16px; word-break: break-all; font-size: 12px; text-align: left; }
    ul { list-style: none; padding: 0; font-family: monospace; font-size: 12px; }
  </style>
  <!--CONFIG_PLACEHOLDER-->
</head>
<body>
  <main>
    <h1 id="title">Connect wallet</h1>
    <p id="instructions"></p>
    <img id="qr" alt="Pairing QR code">
    <div id="status">Waiting for connection...</div>
    <ul id="accounts"></ul>
    <details><summary>Pairing URI</summary><code id="uri"></code></details>
  </main>
  <script>
    const config = window.__PAIRING_CONFIG__;
    const network = config.network === "mainnet" ? "MainNet" : "TestNet";
    document.getElementById("title").textContent = "Connect " + config.walletName;
    document.getElementById("instructions").textContent =
      "Open " + config.walletName + " on " + network + " and scan this QR code.";
    document.getElementById("qr").src = config.qrDataUrl;
    document.getElementById("uri").textContent = config.uri;

    const status = document.getElementById("status");
    const ws = new WebSocket(config.wsUrl);
    ws.onmessage = (event) => {
      const msg = JSON.parse(event.data);
      status.className = msg.status;
      if (msg.status === "connected") {
        status.textContent = "Connected. You can close this tab.";
        document.getElementById("qr").style.display = "none";
        const list = document.getElementById("accounts");
        for (const account of msg.accounts || []) {
          const item = document.createElement("li");
          item.textContent = account.name + ": " + account.address;
          list.appendChild(item);
        }
      } else if (msg.message) {
        status.textContent = msg.message;
      }
    };
  </script>
</body>
</html>
"""


def render_page(config: Dict[str, Any]) -> str:
    """
    Render the pairing page with its inline configuration.

    ``</`` is escaped in the embedded JSON so config values cannot close the
    script element.
    """
    payload = json.dumps(config).replace("</", "<\\/")
    script = f"<script>window.__PAIRING_CONFIG__ = {payload};</script>"
    return PAGE_TEMPLATE.replace(CONFIG_PLACEHOLDER, script)


__all__ = ["render_page"]
