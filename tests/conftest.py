"""Shared pytest fixtures for the next-maker test suite.

Provides reusable fixtures for:
- A miniature starter template carrying every optional feature
- A project workspace copied from that template
- Tool configuration pointing at the local template
- Answer records with overridable fields
- Mocked subprocess execution for git and the package manager
"""

from __future__ import annotations

import json
import shutil
import textwrap
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from next_maker.config import ProjectAnswers, ToolConfig
from next_maker.core.workspace import Workspace
from next_maker.generators.templates import TemplateRenderer


# ---------------------------------------------------------------------------
# Template tree
# ---------------------------------------------------------------------------

TEMPLATE_PACKAGE_JSON: dict = {
    "name": "nextjs-starter",
    "version": "1.0.0",
    "description": "Next.js Starter",
    "packageManager": "pnpm@9.12.0",
    "scripts": {
        "dev": "next dev",
        "build": "next build",
        "start": "next start",
        "lint": "eslint .",
        "lint:fix": "eslint . --fix",
        "format": "prettier --write .",
        "prepare": "husky",
        "commit": "cz",
    },
    "dependencies": {
        "next": "15.1.0",
        "react": "19.0.0",
        "axios": "^1.7.9",
        "react-secure-storage": "^1.3.2",
        "@reduxjs/toolkit": "^2.5.0",
        "react-redux": "^9.2.0",
        "redux-persist": "^6.0.0",
        "next-intl": "^4.0.0",
        "next-themes": "^0.4.4",
    },
    "devDependencies": {
        "husky": "^9.1.7",
        "@commitlint/cli": "^19.6.1",
        "@commitlint/config-conventional": "^19.6.0",
        "lint-staged": "^15.3.0",
        "commitizen": "^4.3.1",
        "cz-conventional-changelog": "^3.3.0",
        "prettier": "^3.4.2",
    },
    "config": {"commitizen": {"path": "cz-conventional-changelog"}},
    "lint-staged": {"*.{ts,tsx}": "eslint --fix"},
    "commitlint": {"extends": ["@commitlint/config-conventional"]},
}

TEMPLATE_FILES: dict[str, str] = {
    # -- providers ---------------------------------------------------------
    "src/providers/index.ts": """\
        export * from './RootProvider';
        export * from './StoreProvider';
        export * from './CustomThemeProvider';
        """,
    "src/providers/RootProvider.tsx": """\
        'use client';

        import { StoreProvider, CustomThemeProvider } from '@/providers';
        import { NextIntlClientProvider, AbstractIntlMessages } from 'next-intl';
        import { SupportedLocale } from '@/types/i18n';

        export const RootProvider = ({
          children,
          locale,
          messages,
        }: {
          children: React.ReactNode;
          locale: SupportedLocale;
          messages: AbstractIntlMessages;
        }) => {
          return (
            <StoreProvider>
              <CustomThemeProvider>
                <NextIntlClientProvider locale={locale} messages={messages}>
                  {children}
                </NextIntlClientProvider>
              </CustomThemeProvider>
            </StoreProvider>
          );
        };
        """,
    "src/providers/StoreProvider.tsx": """\
        'use client';

        import { Provider } from 'react-redux';
        import { store } from '@/store';

        export const StoreProvider = ({ children }: { children: React.ReactNode }) => {
          return <Provider store={store}>{children}</Provider>;
        };
        """,
    "src/providers/CustomThemeProvider.tsx": """\
        'use client';

        import { ThemeProvider } from 'next-themes';

        export const CustomThemeProvider = ({ children }: { children: React.ReactNode }) => {
          return <ThemeProvider attribute="class">{children}</ThemeProvider>;
        };
        """,
    # -- app router --------------------------------------------------------
    "src/app/[locale]/layout.tsx": """\
        import type { Metadata } from 'next';
        import '@/styles/globals.css';
        import { getMessages } from 'next-intl/server';
        import { RootProvider } from '@/providers';

        export const metadata: Metadata = {
          title: 'Next.js Starter',
          description: 'A production ready starter',
        };

        export default async function RootLayout({
          children,
          params,
        }: Readonly<{
          children: React.ReactNode;
          params: Promise<{ locale: string }>;
        }>) {
          const { locale } = await params;
          const messages = await getMessages();
          return (
            <html lang={locale} suppressHydrationWarning={true}>
              <body className={`bg-light dark:bg-dark antialiased`}>
                <RootProvider locale={locale} messages={messages}>
                  {children}
                </RootProvider>
              </body>
            </html>
          );
        }
        """,
    "src/app/[locale]/page.tsx": """\
        import { useTranslations } from 'next-intl';
        import { Counter } from '@/features/counter/components/Counter';

        export default function Home() {
          const t = useTranslations('home');
          return (
            <main className="flex min-h-screen flex-col items-center p-24">
              <h1 className="text-4xl font-bold">{t('title')}</h1>
              <div className="mt-8">
                <h2 className="mb-4 text-xl font-semibold">Redux Counter</h2>
                <Counter />
              </div>
            </main>
          );
        }
        """,
    "src/styles/globals.css": """\
        @import 'tailwindcss';

        @custom-variant dark (&:where(.dark, .dark *));

        @theme {
          --color-light: #ffffff;
          --color-dark: #202938;
        }
        """,
    # -- HTTP layer --------------------------------------------------------
    "src/lib/utils/index.ts": """\
        export * from './http';
        export * from './cn';
        """,
    "src/lib/utils/cn.ts": """\
        export const cn = (...classes: string[]) => classes.filter(Boolean).join(' ');
        """,
    "src/lib/utils/http/index.ts": """\
        export * from './axios-client';
        export * from './fetch-client';
        export * from './token-store';
        """,
    "src/lib/utils/http/token-store.ts": """\
        import { SAVE_AUTH_TOKENS } from '@/lib/config';
        import { StorageService } from '@/services/storage';

        export const tokenStore = {
          save: (token: string) => SAVE_AUTH_TOKENS && StorageService.set('token', token),
        };
        """,
    "src/lib/utils/http/http.types.ts": """\
        import type { InternalAxiosRequestConfig } from 'axios';

        declare module 'axios' {
          export interface AxiosRequestConfig {
            skipAuth?: boolean;
          }
        }

        export interface AxiosClientOptions {
          baseURL: string;
        }

        export interface FetchClientOptions {
          baseURL: string;
        }

        export interface ExtendedRequestInit extends RequestInit {
          skipAuth?: boolean;
        }
        """,
    "src/lib/utils/http/axios-client/index.ts": """\
        import axios from 'axios';
        import { AppApis, API_RESPONSE_DATA_KEY } from '@/lib/config';
        import { HttpError } from '@/lib/errors';
        import { ResultAsync } from '@/types/common';
        import { AxiosClientOptions } from '../http.types';

        export const createAxiosClient = (options: AxiosClientOptions) => axios.create(options);
        export const axiosClient = createAxiosClient({ baseURL: AppApis.auth.login });
        """,
    "src/lib/utils/http/fetch-client/index.ts": """\
        import { AppApis, API_RESPONSE_DATA_KEY } from '@/lib/config';
        import { HttpError } from '@/lib/errors';
        import { Nullable } from '@/types/utility';
        import { FetchClientOptions } from '../http.types';

        export const createFetchClient = (options: FetchClientOptions) => ({ options });
        export const fetchClient = createFetchClient({ baseURL: AppApis.auth.login });
        """,
    "src/lib/errors/index.ts": """\
        export class HttpError extends Error {}
        """,
    "src/types/index.ts": """\
        export * from './common';
        export * from './utility';
        export * from './i18n';
        """,
    "src/types/common/index.ts": """\
        export interface ApiResult<T> {
          data: T | null;
          error: string | null;
        }

        export type ResultAsync<T> = Promise<ApiResult<T>>;
        """,
    "src/types/utility/index.ts": """\
        export type Nullable<T> = T | null;
        """,
    "src/types/i18n.ts": """\
        export type SupportedLocale = 'en' | 'bn';
        """,
    "src/lib/config/index.ts": """\
        export * from './constants';
        export * from './app-apis';
        export * from './app-locales';
        """,
    "src/lib/config/constants.ts": """\
        export const APP_NAME = 'Next.js Starter';
        export const API_RESPONSE_DATA_KEY = 'data';
        export const SAVE_AUTH_TOKENS = true;
        """,
    "src/lib/config/app-apis.ts": """\
        export const API_PREFIX = '/api/v1';

        export const AppApis = {
          auth: {
            login: `${API_PREFIX}/auth/login`,
          },
        } as const;
        """,
    "src/lib/config/app-locales.ts": """\
        export const AppLocales = ['en', 'bn'] as const;
        """,
    "src/services/storage/index.ts": """\
        import secureLocalStorage from 'react-secure-storage';

        export const StorageService = {
          set: (key: string, value: string) => secureLocalStorage.setItem(key, value),
        };
        """,
    # -- state store -------------------------------------------------------
    "src/store/index.ts": """\
        import { configureStore } from '@reduxjs/toolkit';
        import { rootReducer } from './rootReducer';

        export const store = configureStore({ reducer: rootReducer });
        """,
    "src/store/rootReducer.ts": """\
        import { combineReducers } from '@reduxjs/toolkit';
        import { persistReducer } from 'redux-persist';
        import { counterReducer, counterPersistConfig } from '@/features/counter/store';

        export const rootReducer = combineReducers({
          counter: persistReducer(counterPersistConfig, counterReducer),
        });

        export type RootState = ReturnType<typeof rootReducer>;
        """,
    "src/features/counter/store/index.ts": """\
        import { createSlice } from '@reduxjs/toolkit';

        const counterSlice = createSlice({
          name: 'counter',
          initialState: { value: 0 },
          reducers: {},
        });

        export const counterReducer = counterSlice.reducer;
        export const counterPersistConfig = { key: 'counter' };
        """,
    "src/features/counter/components/Counter.tsx": """\
        'use client';

        import { useTranslations } from 'next-intl';
        import { Count } from '@/components';

        export const Counter = () => {
          const t = useTranslations('counter');
          const value = 0;
          return (
            <div>
              <Count>{t('currentCount', { count: value })}</Count>
              <button>{t('increment')}</button>
              <button>{t('decrement')}</button>
              <button>{t('reset')}</button>
            </div>
          );
        };
        """,
    "src/components/index.ts": """\
        export * from './Count';
        export * from './Button';
        """,
    "src/components/Count.tsx": """\
        export const Count = ({ children }: { children: React.ReactNode }) => <span>{children}</span>;
        """,
    "src/components/Button.tsx": """\
        export const Button = () => <button />;
        """,
    # -- i18n --------------------------------------------------------------
    "src/i18n/routing.ts": """\
        import { defineRouting } from 'next-intl/routing';

        export const routing = defineRouting({ locales: ['en', 'bn'], defaultLocale: 'en' });
        """,
    "src/i18n/request.ts": """\
        import { getRequestConfig } from 'next-intl/server';

        export default getRequestConfig(async () => ({ messages: {} }));
        """,
    "src/proxy.ts": """\
        import createMiddleware from 'next-intl/middleware';
        import { routing } from '@/i18n/routing';

        export default createMiddleware(routing);
        """,
    "next.config.ts": """\
        import type { NextConfig } from 'next';
        import createNextIntlPlugin from 'next-intl/plugin';

        const withNextIntl = createNextIntlPlugin();

        const nextConfig: NextConfig = {
          reactStrictMode: true,
        };

        export default withNextIntl(nextConfig);
        """,
    # -- repository files --------------------------------------------------
    ".env.example": """\
        NEXT_PUBLIC_APP_URL=http://localhost:3000

        # Docker Compose Configuration
        CONTAINER_NAME=nextjs-starter
        IMAGE_NAME=nextjs-starter
        IMAGE_TAG=latest
        """,
    ".github/workflows/ci.yml": """\
        name: CI
        on: [push]
        """,
    ".github/ISSUE_TEMPLATE/bug_report.md": """\
        ---
        name: Bug report
        about: Report a bug in Next.js Starter to Teispace
        ---

        Contact support@teispace.com for security issues.
        """,
    ".github/PULL_REQUEST_TEMPLATE.md": """\
        ## Description

        Changes to Next.js Starter maintained by [COMPANY].
        """,
    ".husky/pre-commit": """\
        npx lint-staged
        """,
    "commitlint.config.mjs": """\
        export default { extends: ['@commitlint/config-conventional'] };
        """,
    ".lintstagedrc.mjs": """\
        export default { '*.ts': 'eslint --fix' };
        """,
    ".czrc": """\
        { "path": "cz-conventional-changelog" }
        """,
    "Dockerfile": """\
        FROM node:22-alpine
        """,
    "docker-compose.yml": """\
        services:
          app:
            image: ${IMAGE_NAME}:${IMAGE_TAG}
        """,
    ".dockerignore": """\
        node_modules
        """,
    "LICENSE": "MIT License\n",
    "CHANGELOG.md": "# Changelog\n",
    "README.md": "# Next.js Starter\n",
    "CODE_OF_CONDUCT.md": "# Code of Conduct\n",
    "CONTRIBUTING.md": "# Contributing\n",
    "SECURITY.md": "# Security\n",
    "docs/README.md": "# Docs\n",
}


def build_template(root: Path) -> Path:
    """Write the miniature starter template under *root* and return it."""
    for relative, content in TEMPLATE_FILES.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content), encoding="utf-8")
    (root / "package.json").write_text(
        json.dumps(TEMPLATE_PACKAGE_JSON, indent=2) + "\n", encoding="utf-8"
    )
    return root


# ---------------------------------------------------------------------------
# Paths & workspaces
# ---------------------------------------------------------------------------


@pytest.fixture
def template_dir(tmp_path: Path) -> Path:
    """A pristine starter template tree (auto-cleanup)."""
    return build_template(tmp_path / "template")


@pytest.fixture
def template(template_dir: Path) -> Workspace:
    return Workspace(template_dir)


@pytest.fixture
def project(tmp_path: Path, template_dir: Path) -> Workspace:
    """A project freshly copied from the template, with every feature present."""
    root = tmp_path / "project"
    shutil.copytree(template_dir, root)
    return Workspace(root)


@pytest.fixture
def renderer() -> TemplateRenderer:
    return TemplateRenderer()


@pytest.fixture
def tool_config(template_dir: Path) -> ToolConfig:
    """Tool settings that copy the local template instead of downloading."""
    return ToolConfig(template_dir=template_dir, git_timeout=5, script_timeout=5)


# ---------------------------------------------------------------------------
# Answers
# ---------------------------------------------------------------------------


@pytest.fixture
def make_answers():
    """Factory for ``ProjectAnswers`` with sensible identity fields."""

    def _make(**overrides) -> ProjectAnswers:
        values = {
            "project_name": "demo-app",
            "description": "Demo application",
            "author": "Jane Doe",
            "company": "Acme",
            "email": "dev@acme.io",
        }
        values.update(overrides)
        return ProjectAnswers.build(**values)

    return _make


# ---------------------------------------------------------------------------
# Subprocess mocks
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_commands():
    """Patch ``run_command`` for git and the package manager; every call succeeds."""
    runner = AsyncMock(return_value=(0, "", ""))
    with patch("next_maker.core.git.run_command", runner), patch(
        "next_maker.core.package_manager.run_command", runner
    ):
        yield runner
