"""In-page pointer box so screenshots show where the mouse is.

Headless Chromium draws no cursor. The script below is registered as an init
script on the browser context, so it runs in every new top-level document.
"""
from __future__ import annotations

MOUSE_HELPER_CLASS = "gridshot-mouse-pointer"

MOUSE_HELPER_JS = """
(() => {
  if (window !== window.top) return;
  window.addEventListener('DOMContentLoaded', () => {
    const box = document.createElement('div');
    box.classList.add('%(cls)s');
    const style = document.createElement('style');
    style.innerHTML = `
      .%(cls)s {
        pointer-events: none;
        position: absolute;
        top: 0;
        left: 0;
        z-index: 10000;
        width: 20px;
        height: 20px;
        background: rgba(0,0,0,.4);
        border: 1px solid white;
        border-radius: 10px;
        margin: -10px 0 0 -10px;
        padding: 0;
        transition: background .2s, border-radius .2s, border-color .2s;
      }
      .%(cls)s.button-1 { transition: none; background: rgba(0,0,0,0.9); }
      .%(cls)s.button-2 { transition: none; border-color: rgba(0,0,255,0.9); }
      .%(cls)s.button-3 { transition: none; border-radius: 4px; }
      .%(cls)s.button-4 { transition: none; border-color: rgba(255,0,0,0.9); }
      .%(cls)s.button-5 { transition: none; border-color: rgba(0,255,0,0.9); }
    `;
    document.head.appendChild(style);
    document.body.appendChild(box);
    const updateButtons = (buttons) => {
      for (let i = 0; i < 5; i++)
        box.classList.toggle('button-' + (i + 1), !!(buttons & (1 << i)));
    };
    document.addEventListener('mousemove', (event) => {
      box.style.left = event.pageX + 'px';
      box.style.top = event.pageY + 'px';
      updateButtons(event.buttons);
    }, true);
    document.addEventListener('mousedown', (event) => {
      updateButtons(event.buttons);
      box.classList.add('button-' + event.which);
    }, true);
    document.addEventListener('mouseup', (event) => {
      updateButtons(event.buttons);
      box.classList.remove('button-' + event.which);
    }, true);
  }, false);
})();
""" % {"cls": MOUSE_HELPER_CLASS}
